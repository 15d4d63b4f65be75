"""Built-in CLI sub-commands for clientforge.

Each module exports a plain callback function registered directly on the
root app in :mod:`clientforge.app`:

* :mod:`~clientforge.commands.init` -- write ``api.config.toml`` and the
  client scaffolding.
* :mod:`~clientforge.commands.fetch` -- download the spec and regenerate.
* :mod:`~clientforge.commands.generate` -- regenerate from the cached spec.
* :mod:`~clientforge.commands.diff` -- preview operation changes.
* :mod:`~clientforge.commands.validate` -- report spec issues.
* :mod:`~clientforge.commands.status` -- show config, cache, and file state.
* :mod:`~clientforge.commands.watch` -- poll and regenerate on change.

Shared plumbing (config loading, error-to-exit-code conversion, generation
summaries) lives in :mod:`~clientforge.commands.common`.
"""
