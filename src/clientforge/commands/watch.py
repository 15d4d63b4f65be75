"""Watch command -- poll the spec and regenerate on change.

Implements ``clientforge watch``. Each cycle fetches the spec, saves it and
regenerates types and operations when its hash changed. A failed cycle is
logged and the loop carries on; SIGINT or SIGTERM stop it after the
current cycle.
"""

from __future__ import annotations

import signal
import time
from typing import Any, Callable, Optional

import typer

from clientforge.config import LoadedConfig
from clientforge.models import OutputPaths
from clientforge.output import OutputManager, get_output

_SLEEP_STEP = 0.2


class Watcher:
    """Runs poll cycles until :meth:`stop` is called.

    Args:
        loaded: The project config.
        paths: Resolved output paths.
        output: Reporter for progress and errors.
        interval_ms: Delay between the end of one cycle and the next.
        sleep: Injected for tests.
    """

    def __init__(
        self,
        loaded: LoadedConfig,
        paths: OutputPaths,
        output: OutputManager,
        interval_ms: int,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> None:
        self.loaded = loaded
        self.paths = paths
        self.output = output
        self.interval_ms = interval_ms
        self.cycles = 0
        self.regenerations = 0
        self._sleep = sleep
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self) -> None:
        self._stopped = True

    def run_cycle(self) -> bool:
        """Fetch once and regenerate if the spec changed.

        Returns:
            ``True`` if the client was regenerated.
        """
        from clientforge.commands.fetch import sync_spec
        from clientforge.generator import generate

        self.cycles += 1
        self.output.debug("Polling for spec changes", cycle=self.cycles)
        result = sync_spec(self.loaded, self.paths, self.output)
        if not result.has_changed:
            self.output.debug("Spec unchanged", hash=result.hash[:8])
            return False

        self.output.info("Spec changed, regenerating...", hash=result.hash[:8])
        generation = generate(self.paths, self.output)
        self.regenerations += 1
        self.output.success("Regenerated client", operations=generation.operation_count)
        return True

    def run(self, max_cycles: Optional[int] = None) -> None:
        """Loop until stopped (or *max_cycles* have run)."""
        from clientforge.exceptions import ClientforgeError, format_error

        while not self._stopped:
            try:
                self.run_cycle()
            except ClientforgeError as exc:
                self.output.error("Cycle failed, will retry next interval")
                self.output.error(format_error(exc))
            if max_cycles is not None and self.cycles >= max_cycles:
                break
            self._wait()

    def _wait(self) -> None:
        remaining = self.interval_ms / 1000
        while remaining > 0 and not self._stopped:
            step = min(_SLEEP_STEP, remaining)
            self._sleep(step)
            remaining -= step


def watch_command(
    ctx: typer.Context,
    interval: Optional[int] = typer.Option(
        None, "--interval", "-i", help="Polling interval in milliseconds (default: config)."
    ),
    debug: bool = typer.Option(
        False, "--debug", "-d", help="Log every poll cycle."
    ),
) -> None:
    """Watch the spec and regenerate the client whenever it changes.

    Example::

        clientforge watch
        clientforge watch --interval 5000 --debug
    """
    from clientforge.commands.common import cli_errors, load_project
    from clientforge.generator import generate_client_files

    output = get_output()
    output.separator("clientforge watch")

    with cli_errors():
        loaded, paths = load_project(ctx)
        if debug or loaded.config.watch.debug:
            output.set_verbose(True)

        interval_ms = interval if interval is not None else loaded.config.poll_interval_ms
        generate_client_files(paths, loaded.config.instance, output)

        watcher = Watcher(loaded, paths, output, interval_ms)

        def _stop(signum: int, frame: Any) -> None:  # noqa: ANN401
            output.info("Stopping watch mode...")
            watcher.stop()

        previous = {
            sig: signal.signal(sig, _stop) for sig in (signal.SIGINT, signal.SIGTERM)
        }
        output.info(
            "Watching for spec changes",
            endpoint=loaded.config.spec_file or loaded.config.api_endpoint,
            interval_ms=interval_ms,
        )
        try:
            watcher.run()
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

        output.success("Watch stopped", cycles=watcher.cycles, regenerations=watcher.regenerations)
