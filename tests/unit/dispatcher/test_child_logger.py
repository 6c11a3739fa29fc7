"""
Tests unitaires pour Plume: Dispatcher - ChildLogger
"""

from typing import List

import pytest

from plume.core import ITransport, LogEntry, LoggerOptions, LogLevel
from plume.dispatcher import ChildLogger, StructuredLogger, deep_merge, join_prefix


class CollectingTransport(ITransport):
    def __init__(self) -> None:
        self.entries: List[LogEntry] = []

    def log(self, entry: LogEntry, options: LoggerOptions) -> None:
        self.entries.append(entry)


@pytest.fixture
def collected():
    transport = CollectingTransport()
    return StructuredLogger(transports=[transport]), transport


class TestChildLogger:
    """Tests du logger enfant."""

    def test_prefix_added(self, collected) -> None:
        """Le préfixe précède le message."""
        root, transport = collected

        root.child(message_prefix="[API]").info("started")

        assert transport.entries[0].message == "[API] started"

    def test_call_data_overrides_default_data(self, collected) -> None:
        """Données par défaut {a:1, b:3} + appel {a:2} -> {a:2, b:3}."""
        root, transport = collected
        child = root.child(default_data={"a": 1, "b": 3})

        child.info("x", {"a": 2})

        assert transport.entries[0].data == {"a": 2, "b": 3}

    def test_default_data_without_call_data(self, collected) -> None:
        """Sans données dans l'appel, les données par défaut sont utilisées."""
        root, transport = collected

        root.child(default_data={"service": "api"}).warn("x", "positional")

        entry = transport.entries[0]
        assert entry.data == {"service": "api"}
        assert entry.args.processed_args == ("positional",)
        assert entry.level == LogLevel.WARN

    def test_context_alias(self, collected) -> None:
        """context complète default_data et l'emporte en cas de conflit."""
        root, transport = collected

        root.child(default_data={"a": 1, "b": 1}, context={"b": 2}).info("x")

        assert transport.entries[0].data == {"a": 1, "b": 2}

    def test_nested_children_bind_to_root(self, collected) -> None:
        """Un enfant d'enfant est rattaché à la racine, préfixes et données composés."""
        root, transport = collected
        api = root.child(message_prefix="[API]", default_data={"svc": {"name": "api"}})
        users = api.child(message_prefix="[users]", default_data={"svc": {"v": 2}})

        users.info("created", {"id": 3})

        assert users.root is root
        assert users.message_prefix == "[API] [users]"
        assert transport.entries[0].message == "[API] [users] created"
        assert transport.entries[0].data == {"svc": {"name": "api", "v": 2}, "id": 3}

    def test_root_level_applies(self, collected) -> None:
        """Le filtre de niveau de la racine s'applique."""
        root, transport = collected
        root.set_options(level="warn")
        child = root.child(message_prefix="[c]")

        assert child.info("hidden") is None
        child.error("shown")

        assert [e.message for e in transport.entries] == ["[c] shown"]

    def test_non_string_message(self, collected) -> None:
        """Un message non str est converti avant préfixage."""
        root, transport = collected

        root.child(message_prefix="[c]").info(42)

        assert transport.entries[0].message == "[c] 42"

    def test_default_data_is_copied(self, collected) -> None:
        """default_data retourne une copie."""
        root, _ = collected
        child = root.child(default_data={"a": 1})

        child.default_data["a"] = 99

        assert child.default_data == {"a": 1}

    @pytest.mark.asyncio
    async def test_flush_all_delegates(self, collected) -> None:
        """flush_all délègue à la racine."""
        root, _ = collected
        child = ChildLogger(root)

        await child.flush_all()

        assert root.pending_count == 0


class TestHelpers:
    """Tests de join_prefix et deep_merge."""

    def test_join_prefix_skips_empty(self) -> None:
        """Les préfixes vides sont ignorés."""
        assert join_prefix("[a]", None, "", "[b]") == "[a] [b]"

    def test_deep_merge(self) -> None:
        """Fusion récursive, override prioritaire, sources intactes."""
        base = {"a": {"x": 1}, "b": 1}
        override = {"a": {"y": 2}, "b": {"z": 3}}

        assert deep_merge(base, override) == {"a": {"x": 1, "y": 2}, "b": {"z": 3}}
        assert base == {"a": {"x": 1}, "b": 1}
