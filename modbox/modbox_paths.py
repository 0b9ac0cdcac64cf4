import re
from typing import Optional

_RELATIVE = re.compile(r"((?:\.\.?/)+)(.*)")


def resolve_relative_path(relative_path: str, base_path: str) -> Optional[str]:
    """
    Resolve a relative file path against the path of the requiring file.

    resolve_relative_path('../foo.py', 'src/bar/bar.py') returns 'src/foo.py'.

    Returns None when relative_path does not start with ./ or ../, which
    callers treat as "this is a module name". Popping past the first
    directory is a silent no-op: resolve_relative_path('../a.py', 'b.py')
    returns 'a.py'.
    """
    m = _RELATIVE.fullmatch(relative_path)
    if not m:
        return None

    # 'foo/bar/baz.py' -> ['foo', 'bar']
    base_dir_parts = base_path.split('/')[:-1]

    # '../../' -> ['..', '..']
    for prefix in m.group(1).split('/')[:-1]:
        if prefix == '..' and base_dir_parts:
            base_dir_parts.pop()

    rest = m.group(2)
    if base_dir_parts:
        return '/'.join(base_dir_parts) + '/' + rest
    return rest


__all__ = ["resolve_relative_path"]
