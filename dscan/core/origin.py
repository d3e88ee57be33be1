"""Resolve which installed dependency a declaration comes from."""

VENDOR_MARKER = "node_modules"
SCOPE_MARKER = "@"


def resolve_origin(definition_path: str | None) -> str | None:
    """
    Return the package name owning ``definition_path``.

    Only the first (outermost) ``node_modules`` segment is considered, so
    ``/a/node_modules/pkg-a/node_modules/pkg-b/x.js`` resolves to ``pkg-a``.
    Scoped packages resolve to ``@scope/name``. Paths outside any vendor
    directory resolve to ``None``.
    """
    if not definition_path:
        return None

    segments = definition_path.replace("\\", "/").split("/")
    try:
        marker = segments.index(VENDOR_MARKER)
    except ValueError:
        return None

    rest = segments[marker + 1 :]
    if not rest or not rest[0]:
        return None

    name = rest[0]
    if name.startswith(SCOPE_MARKER) and len(rest) > 1 and rest[1]:
        return f"{name}/{rest[1]}"
    return name
