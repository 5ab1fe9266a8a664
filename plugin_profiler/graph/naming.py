"""Deterministic identifier construction for every graph entity.

Each visitor builds node ids exclusively through these functions, so an
edge drawn by one visitor toward an entity owned by another (a hook
callback, an included file, a block render template) lands on the same id
the owning visitor registers.  All functions are pure.
"""

from __future__ import annotations

import hashlib
import pathlib
from typing import Optional

from plugin_profiler.models.graph import sanitize_id


def short_name(qualified: str) -> str:
    """Return the last segment of a ``\\``-separated PHP name."""
    return qualified.strip("\\").rsplit("\\", 1)[-1]


def relative_path(path: str, root: Optional[str]) -> str:
    """Return *path* relative to *root* in POSIX form.

    Falls back to the raw (POSIX-normalized) path when *root* is unknown or
    does not prefix *path*.
    """
    posix = pathlib.PurePath(path).as_posix()
    if not root:
        return posix
    root_posix = pathlib.PurePath(root).as_posix().rstrip("/")
    if posix == root_posix:
        return ""
    if posix.startswith(root_posix + "/"):
        return posix[len(root_posix) + 1 :]
    return posix


def fingerprint(file: str, line: int) -> str:
    """Short stable token distinguishing call sites that carry no name."""
    digest = hashlib.md5(file.encode("utf-8")).hexdigest()[:8]
    return f"{digest}_{line}"


# ------------------------------------------------------------------
# Server-side structure
# ------------------------------------------------------------------


def class_id(qualified: str) -> str:
    """Id of a class-like declaration from its fully qualified name."""
    return sanitize_id("class_" + qualified.strip("\\"))


def method_id(class_name: str, method: str) -> str:
    return sanitize_id(f"method_{short_name(class_name)}_{method}")


def function_id(name: str) -> str:
    return sanitize_id("func_" + short_name(name))


def anonymous_function_id(file: str, line: int) -> str:
    return sanitize_id("func_anonymous_" + fingerprint(file, line))


def file_id(path: str, root: Optional[str] = None) -> str:
    """Id of a file, relative to the plugin root when it lies inside it."""
    return sanitize_id("file_" + relative_path(path, root))


def dynamic_file_id(file: str, line: int) -> str:
    """Placeholder id for an include target that cannot be resolved statically."""
    return sanitize_id("file_dynamic_" + fingerprint(file, line))


# ------------------------------------------------------------------
# WordPress integration points
# ------------------------------------------------------------------


def hook_id(kind: str, name: str) -> str:
    """Id of an action or filter hook; *kind* is ``action`` or ``filter``."""
    return sanitize_id(f"hook_{kind}_{name}")


def dynamic_hook_name(file: str, line: int) -> str:
    """Stand-in name for a hook whose name is built at runtime."""
    return "dynamic_" + fingerprint(file, line)


def data_source_id(operation: str, key: Optional[str], file: str, line: int) -> str:
    if key is None:
        return sanitize_id(f"data_{operation}_dynamic_{fingerprint(file, line)}")
    return sanitize_id(f"data_{operation}_{key}")


def ajax_handler_id(action: str) -> str:
    return sanitize_id("ajax_" + action)


def rest_endpoint_id(method: str, route: str) -> str:
    return sanitize_id(f"rest_{method.upper()}_{route}")


def shortcode_id(tag: str) -> str:
    return sanitize_id("shortcode_" + tag)


def admin_page_id(slug: str) -> str:
    return sanitize_id("admin_" + slug)


def cron_job_id(hook: str) -> str:
    return sanitize_id("cron_" + hook)


def post_type_id(slug: str) -> str:
    return sanitize_id("post_type_" + slug)


def taxonomy_id(slug: str) -> str:
    return sanitize_id("taxonomy_" + slug)


def http_call_id(url: Optional[str], file: str, line: int) -> str:
    return sanitize_id(f"http_{url or 'dynamic'}_{fingerprint(file, line)}")


def block_id(name: str) -> str:
    """Id of a Gutenberg block, shared by ``block.json`` and script registrations."""
    return sanitize_id("block_" + name)


# ------------------------------------------------------------------
# Front-end
# ------------------------------------------------------------------


def module_name(file: str) -> str:
    """Module token of a script file: its relative path without extension."""
    return str(pathlib.PurePosixPath(file).with_suffix(""))


def script_hook_id(kind: str, name: str) -> str:
    return sanitize_id(f"js_hook_{kind}_{name}")


def script_api_call_id(method: str, path: str) -> str:
    return sanitize_id(f"js_api_{method.upper()}_{path}")


def component_id(module: str, name: str) -> str:
    return sanitize_id(f"component_{module}_{name}")


def script_function_id(module: str, name: str) -> str:
    return sanitize_id(f"js_func_{module}_{name}")


def script_class_id(module: str, name: str) -> str:
    return sanitize_id(f"js_class_{module}_{name}")


def react_hook_id(name: str, file: str, line: int) -> str:
    return sanitize_id(f"react_hook_{name}_{fingerprint(file, line)}")


def call_site_id(prefix: str, file: str, line: int) -> str:
    """Id of a per-call-site entity such as a ``fetch`` or ``axios`` call."""
    return sanitize_id(f"{prefix}_{fingerprint(file, line)}")
