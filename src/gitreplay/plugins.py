"""Pluggy hookspecs for gitreplay operation sinks."""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from gitreplay.sinks import OperationSink

logger = logging.getLogger(__name__)

hookspec = pluggy.HookspecMarker("gitreplay")
hookimpl = pluggy.HookimplMarker("gitreplay")

ENTRY_POINT_GROUP = "gitreplay"


class GitReplaySpec:
    """Hook specifications for gitreplay plugins."""

    @hookspec
    def gitreplay_get_sink_info(self) -> dict[str, str] | None:
        """Return sink identification info.

        Returns:
            Dict with 'name' (short identifier like 'jsonl') and
            'description' (human-readable description), or None.
        """

    @hookspec(firstresult=True)
    def gitreplay_create_sink(self, name: str, options: dict[str, Any]) -> OperationSink | None:
        """Create a sink that consumes the replay operation stream.

        Args:
            name: Sink identifier requested by the user.
            options: Sink options such as 'output' (a path) or 'stream'.

        Returns:
            An object with handle(operation) and close() methods, or None
            if this plugin does not provide the named sink.
        """


def get_plugin_manager() -> pluggy.PluginManager:
    """Create and configure the plugin manager."""
    pm = pluggy.PluginManager("gitreplay")
    pm.add_hookspecs(GitReplaySpec)
    return pm


def register_builtin_plugins(pm: pluggy.PluginManager) -> None:
    """Register the built-in sink plugins."""
    from gitreplay.sinks.console import ConsoleSinkPlugin
    from gitreplay.sinks.jsonl import JsonlSinkPlugin

    pm.register(JsonlSinkPlugin())
    pm.register(ConsoleSinkPlugin())


def load_plugins_from_entry_points(pm: pluggy.PluginManager) -> int:
    """Load plugins from the 'gitreplay' entry point group.

    Class entry points are instantiated; other objects are registered as is.

    Returns:
        Number of plugins loaded.
    """
    count = 0
    for ep in entry_points(group=ENTRY_POINT_GROUP):
        try:
            plugin_obj = ep.load()
        except (ImportError, AttributeError) as e:
            logger.warning("Skipping plugin %s: %s", ep.name, e)
            continue

        if isinstance(plugin_obj, type):
            plugin_obj = plugin_obj()

        if not pm.is_registered(plugin_obj):
            pm.register(plugin_obj, name=ep.name)
            count += 1

    return count


_configured_plugin_manager: pluggy.PluginManager | None = None


def get_configured_plugin_manager() -> pluggy.PluginManager:
    """Get a plugin manager with built-in and installed plugins registered.

    The manager is cached, so repeated calls return the same instance.
    """
    global _configured_plugin_manager
    if _configured_plugin_manager is None:
        _configured_plugin_manager = get_plugin_manager()
        register_builtin_plugins(_configured_plugin_manager)
        load_plugins_from_entry_points(_configured_plugin_manager)
    return _configured_plugin_manager


def reset_plugin_manager() -> None:
    """Reset the cached plugin manager."""
    global _configured_plugin_manager
    _configured_plugin_manager = None


def available_sinks() -> list[dict[str, str]]:
    """Name and description of every registered sink."""
    pm = get_configured_plugin_manager()
    return [info for info in pm.hook.gitreplay_get_sink_info() if info]


def create_sink(name: str, **options: Any) -> OperationSink:
    """Create a sink by name.

    Raises:
        ValueError: If no plugin provides the sink.
    """
    pm = get_configured_plugin_manager()
    sink = pm.hook.gitreplay_create_sink(name=name, options=options)
    if sink is None:
        names = ", ".join(info["name"] for info in available_sinks())
        raise ValueError(f"Unknown sink '{name}'. Available: {names}")
    return sink
