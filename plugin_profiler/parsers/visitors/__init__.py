"""PHP syntax-tree visitors, one per entity family."""

from plugin_profiler.parsers.visitors.base import NamespaceAwareVisitor
from plugin_profiler.parsers.visitors.class_visitor import ClassVisitor
from plugin_profiler.parsers.visitors.data_source_visitor import DataSourceVisitor
from plugin_profiler.parsers.visitors.external_interface_visitor import ExternalInterfaceVisitor
from plugin_profiler.parsers.visitors.file_visitor import FileVisitor
from plugin_profiler.parsers.visitors.function_visitor import FunctionVisitor
from plugin_profiler.parsers.visitors.hook_visitor import HookVisitor

__all__ = [
    "NamespaceAwareVisitor",
    "ClassVisitor",
    "FunctionVisitor",
    "HookVisitor",
    "DataSourceVisitor",
    "ExternalInterfaceVisitor",
    "FileVisitor",
]
