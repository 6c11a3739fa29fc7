"""
Tests unitaires pour Plume: Redaction - Redactor

Copies masquées, pré-vérification, surcharges par chemin et audit.
"""

import copy
from typing import Any, List

from plume.core import LogLevel, normalize_entry
from plume.redaction import (
    FieldRedactionConfig,
    RedactionAuditEvent,
    RedactionConfig,
    RedactionContext,
    get_redacted_entry,
    needs_redaction,
    redact_log_entry,
    redact_object,
)


class TestRedactObject:
    """Tests de redact_object."""

    def test_nested_keys_redacted(self) -> None:
        """Les clés sensibles sont remplacées à toute profondeur."""
        config = RedactionConfig(keys=["password", "token"])
        value = {"user": {"name": "ana", "password": "p"}, "items": [{"token": "t"}]}

        result = redact_object(value, config)

        assert result == {
            "user": {"name": "ana", "password": "[REDACTED]"},
            "items": [{"token": "[REDACTED]"}],
        }

    def test_source_is_never_mutated(self) -> None:
        """La valeur source reste identique."""
        config = RedactionConfig(keys=["password"])
        value = {"password": "p", "nested": {"password": "q"}}
        snapshot = copy.deepcopy(value)

        redact_object(value, config)

        assert value == snapshot

    def test_container_replaced_whole(self) -> None:
        """Une clé sensible remplace tout le sous-arbre."""
        config = RedactionConfig(keys=["credentials"])

        result = redact_object({"credentials": {"a": 1}}, config)

        assert result == {"credentials": "[REDACTED]"}

    def test_value_patterns(self) -> None:
        """Valeurs str correspondant à un motif."""
        config = RedactionConfig(value_patterns=[r"^sk_live_"])

        result = redact_object({"note": "sk_live_123", "list": ["sk_live_9", "ok"]}, config)

        assert result == {"note": "[REDACTED]", "list": ["[REDACTED]", "ok"]}

    def test_whitelist_beats_value_pattern(self) -> None:
        """Clé en liste blanche: valeur conservée même si un motif correspond."""
        config = RedactionConfig(value_patterns=[r"\d{4}-\d{4}"], whitelist=["order_id"])
        value = {"order_id": "1234-5678", "card": "4242-4242"}

        assert redact_object(value, config) == {"order_id": "1234-5678", "card": "[REDACTED]"}

    def test_whitelisted_list_item(self) -> None:
        """Élément de liste en liste blanche par chemin."""
        config = RedactionConfig(value_patterns=[r"^tok_"], whitelist=["ids[0]"])

        result = redact_object({"ids": ["tok_public", "tok_private"]}, config)

        assert result == {"ids": ["tok_public", "[REDACTED]"]}

    def test_replacement_function(self) -> None:
        """Remplacement fonctionnel (valeur, clé, chemin)."""
        config = RedactionConfig(
            keys=["email"], replacement=lambda value, key, path: f"<{path}>"
        )

        assert redact_object({"user": {"email": "a@b.c"}}, config) == {
            "user": {"email": "<user.email>"}
        }

    def test_cyclic_value(self) -> None:
        """Référence circulaire: marqueur, pas de boucle."""
        config = RedactionConfig(keys=["secret"])
        value: dict = {"secret": "s"}
        value["self"] = value

        result = redact_object(value, config)

        assert result == {"secret": "[REDACTED]", "self": "[Circular Reference]"}

    def test_depth_bound(self) -> None:
        """Profondeur atteignant max_depth: marqueur."""
        config = RedactionConfig(keys=["x"], max_depth=2)

        result = redact_object({"a": {"b": {"c": 1}}}, config)

        assert result == {"a": {"b": "[Max Depth Exceeded]"}}

    def test_field_config_disabled(self) -> None:
        """Un chemin désactivé n'est jamais masqué."""
        config = RedactionConfig(
            keys=["token"], field_configs={"public.token": FieldRedactionConfig(disabled=True)}
        )

        result = redact_object({"public": {"token": "t"}, "token": "u"}, config)

        assert result == {"public": {"token": "t"}, "token": "[REDACTED]"}

    def test_field_config_replacement_forces_masking(self) -> None:
        """Un remplacement par chemin masque même sans règle de clé."""
        config = RedactionConfig(
            field_configs={"user.*": FieldRedactionConfig(replacement="***")}
        )

        assert redact_object({"user": {"id": 1}}, config) == {"user": {"id": "***"}}

    def test_field_custom_redactor(self) -> None:
        """Fonction propre au chemin."""
        config = RedactionConfig(
            field_configs={
                "card": FieldRedactionConfig(custom_redactor=lambda v, ctx: f"****{v[-4:]}")
            }
        )

        assert redact_object({"card": "4242424242424242"}, config) == {"card": "****4242"}

    def test_global_custom_redactor_applies_when_changed(self) -> None:
        """La fonction globale est retenue si elle change la valeur."""
        contexts: List[RedactionContext] = []

        def upper_ids(value: Any, context: RedactionContext) -> Any:
            contexts.append(context)
            return value.upper() if context.key == "id" else value

        config = RedactionConfig(custom_redactor=upper_ids)

        result = redact_object({"id": "abc", "name": "x"}, config, field="data")

        assert result == {"id": "ABC", "name": "x"}
        assert contexts[0].field == "data"

    def test_failing_custom_redactor_is_reported(self, internal_warnings) -> None:
        """Une fonction en échec est rapportée, la valeur conservée."""

        def broken(value: Any, context: RedactionContext) -> Any:
            raise RuntimeError("broken")

        result = redact_object({"a": 1}, RedactionConfig(custom_redactor=broken))

        assert result == {"a": 1}
        assert internal_warnings


class TestNeedsRedaction:
    """Tests de needs_redaction."""

    def test_no_rules(self) -> None:
        """Sans règle clé/valeur: toujours False."""
        assert needs_redaction({"password": "x"}, RedactionConfig()) is False

    def test_agrees_with_redact_object(self) -> None:
        """needs_redaction est vrai exactement quand redact_object change la valeur."""
        config = RedactionConfig(keys=["*.secret"], value_patterns=[r"^tok_"])
        samples = [
            {"a": 1},
            {"a": {"secret": 1}},
            [{"b": "tok_1"}],
            {"list": [1, 2, {"c": "plain"}]},
            "tok_2",
            42,
        ]

        for sample in samples:
            assert needs_redaction(sample, config) == (redact_object(sample, config) != sample)

    def test_whitelist_respected(self) -> None:
        """Seules des valeurs en liste blanche correspondent: rien à masquer."""
        config = RedactionConfig(value_patterns=[r"\d{4}-\d{4}"], whitelist=["order_id"])

        assert needs_redaction({"order_id": "1234-5678"}, config) is False
        assert needs_redaction({"order": {"order_id": "1234-5678"}}, config) is False

    def test_cycles_terminate(self) -> None:
        """Les cycles ne bouclent pas."""
        value: dict = {"a": 1}
        value["self"] = value

        assert needs_redaction(value, RedactionConfig(keys=["zzz"])) is False


class TestAudit:
    """Tests de l'audit des masquages."""

    def test_audit_hook_receives_events(self) -> None:
        """Un événement par masquage."""
        events: List[RedactionAuditEvent] = []
        config = RedactionConfig(keys=["password"], audit_hook=events.append)

        redact_object({"password": "p"}, config)

        assert len(events) == 1
        assert events[0].type == "key"
        assert events[0].before == "p"
        assert events[0].after == "[REDACTED]"
        assert events[0].context.path == "password"

    def test_audit_redaction_uses_debug_channel(self) -> None:
        """audit_redaction trace via le hook de debug interne."""
        from plume.core import set_internal_debug_handler

        messages: List[str] = []
        set_internal_debug_handler(lambda message, data=None: messages.append(message))

        redact_object({"token": "t"}, RedactionConfig(keys=["token"], audit_redaction=True))

        assert messages == ["[REDACTION AUDIT] KEY: token"]


class TestEntryRedaction:
    """Tests de get_redacted_entry et redact_log_entry."""

    def test_identity_without_config(self, make_entry) -> None:
        """Sans politique: l'entrée elle-même."""
        entry = make_entry("hello", {"password": "p"})
        assert get_redacted_entry(entry) is entry

    def test_identity_when_nothing_matches(self, make_entry) -> None:
        """Rien à masquer: l'entrée elle-même."""
        entry = make_entry("hello", {"user": "ana"})
        assert get_redacted_entry(entry, RedactionConfig(keys=["password"])) is entry

    def test_identity_for_other_target(self, make_entry) -> None:
        """Politique réservée à une autre cible."""
        entry = make_entry("hello", {"password": "p"})
        config = RedactionConfig(keys=["password"], redact_in="file")

        assert get_redacted_entry(entry, config, "console") is entry
        assert get_redacted_entry(entry, config, "file") is not entry

    def test_redacted_copy(self, make_entry) -> None:
        """Copie masquée, l'entrée source intacte."""
        entry = make_entry("login", {"user": {"password": "p"}}, {"token": "t"})
        config = RedactionConfig(keys=["password", "token"])

        redacted = get_redacted_entry(entry, config)

        assert redacted.data == {"user": {"password": "[REDACTED]"}, "token": "[REDACTED]"}
        assert entry.data == {"user": {"password": "p"}, "token": "t"}
        assert redacted.timestamp == entry.timestamp

    def test_message_and_string_args(self) -> None:
        """Chaînes libres masquées dans message et arguments."""
        entry = normalize_entry(LogLevel.INFO, "card 4242 used", ["pin 1234"])
        config = RedactionConfig(redact_strings=True, string_patterns=[r"\d{4}"])

        redacted = get_redacted_entry(entry, config)

        assert redacted.message == "card [REDACTED] used"
        assert redacted.args.processed_args == ("pin [REDACTED]",)

    def test_fields_restrict_scope(self) -> None:
        """Seules les parties listées dans fields sont traitées."""
        entry = normalize_entry(LogLevel.INFO, "pin 1234", [{"pin": "1234"}])
        config = RedactionConfig(
            keys=["pin"], redact_strings=True, string_patterns=[r"\d{4}"], fields=("data",)
        )

        redacted = redact_log_entry(entry, config)

        assert redacted.message == "pin 1234"
        assert redacted.data == {"pin": "[REDACTED]"}

    def test_complex_args_redacted(self) -> None:
        """Arguments structurés masqués comme des objets."""
        entry = normalize_entry(LogLevel.INFO, "batch", [[{"token": "t"}]])

        redacted = get_redacted_entry(entry, RedactionConfig(keys=["token"]))

        assert redacted.args.processed_args == ([{"token": "[REDACTED]"}],)
