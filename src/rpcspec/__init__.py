"""rpcspec -- inspect RPC API specifications and resolve their type names.

An RPC server publishes a machine-readable description of its methods and
the named types they reference (``{"methods": [...], "types": {...}}``).
This package fetches that document, keeps track of the currently loaded
spec, and turns type-name strings such as ``[]*api.User`` into structured
:class:`~rpcspec.models.TypeDescriptor` values suitable for display.

Typical usage::

    import asyncio
    from rpcspec.repository import SpecRepository

    repo = SpecRepository("http://localhost:8080/spec.json")
    asyncio.run(repo.load_spec())
    for method in repo.methods:
        print(method.name, repo.resolve(method.params))

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for the spec document, descriptors and config.
    resolver: Type-name parsing and resolution against the type registry.
    repository: Loading/error/selection state for one spec document.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
