"""FSDEDUPE test suite.

Folder taxonomy
- unit/         : Isolated, fast checks of a single module/class/function.
- contract/     : Behavior every `AbstractDedupeStore` backend must share.
- integration/  : The local store, tree helpers and dedupe utilities on a real filesystem.
- e2e/          : The ``fsdedupe`` CLI driven through Click's test runner.
- fixtures/     : Shared pytest fixtures (directory trees, stores).
- helpers/      : Shared utilities (no tests here).

General guidance
- Filesystem tests work under ``tmp_path``; nothing touches the user's home.
- Contract tests take the parametrized ``store`` fixture, never a concrete class.
- Property-based tests live with the layer they exercise and use @pytest.mark.property.
- Markers: unit, contract, integration, e2e, property
"""
