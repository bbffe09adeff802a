"""Tests for the advert document store and models."""

import json

import pytest

from marquee.core.store import (
    MIN_DOCUMENT_BYTES,
    ConfigDocumentError,
    ConfigStore,
    build_document,
    parse_document,
)
from marquee.models.advert import AdvertConfig, MessageType, make_default_config


class TestDefaults:
    def test_missing_file_generates_and_persists_default(self, tmp_path) -> None:
        store = ConfigStore(tmp_path / "cfg" / "marquee.json")
        config = store.load()

        assert config == make_default_config()
        assert store.path.exists()
        on_disk = json.loads(store.path.read_text())
        assert on_disk["_comment"]
        assert on_disk["server_name"] == "ImperfectGamers"
        assert on_disk["ads"][0]["Interval"] == 60.0
        assert on_disk["welcome_message"]["MessageType"] == "Chat"

    def test_near_empty_file_regenerated(self, tmp_path) -> None:
        path = tmp_path / "marquee.json"
        path.write_text("{}")
        assert path.stat().st_size < MIN_DOCUMENT_BYTES

        store = ConfigStore(path)
        assert store.load().server_name == "ImperfectGamers"
        assert path.stat().st_size >= MIN_DOCUMENT_BYTES

    def test_existing_file_not_overwritten(self, tmp_path) -> None:
        path = tmp_path / "marquee.json"
        doc = build_document(AdvertConfig(server_name="Mine", html_center_duration=3.5))
        path.write_text(json.dumps(doc, indent=2))

        store = ConfigStore(path)
        assert store.ensure_default() is False
        assert store.load().server_name == "Mine"

    def test_saved_default_round_trips(self, tmp_path) -> None:
        store = ConfigStore(tmp_path / "marquee.json")
        store.ensure_default()
        assert parse_document(store.path.read_text()) == make_default_config()


class TestParse:
    def test_legacy_document_shape(self) -> None:
        text = """
        // operator note
        {
          "print_to_center_html": true,
          "html_center_duration": 4,
          "welcome_message": {"MessageType": 2, "Message": "hi", "DisplayDelay": 1},
          "ads": [{"Interval": 30, "Messages": [{"Chat": "a"}, {"Center": "b"}]}],
          "default_lang": "US",
          "Version": 3
        }
        """
        config = parse_document(text)
        assert config.print_to_center_html is True
        assert config.welcome_message.message_type is MessageType.CENTER_HTML
        assert config.ads[0].messages == [{"Chat": "a"}, {"Center": "b"}]
        assert config.version == 3
        assert config.language_messages is None

    def test_message_type_by_name(self) -> None:
        config = parse_document(
            '{"welcome_message": {"MessageType": "CenterHtml", "Message": "x"}}'
        )
        assert config.welcome_message.message_type is MessageType.CENTER_HTML
        assert config.welcome_message.display_delay == 2.0

    def test_trailing_and_block_comments(self) -> None:
        text = """
        /* operator note
           spanning lines */
        {
          "print_to_center_html": true, // overlay on
          "server_name": "Surf // Zone", /* inline */ "server_subname": "/* not a comment */",
          "ads": [{"Interval": 30, "Messages": [{"Chat": "see https://example.com"}]}]
        }
        """
        config = parse_document(text)
        assert config.print_to_center_html is True
        assert config.server_name == "Surf // Zone"
        assert config.server_subname == "/* not a comment */"
        assert config.ads[0].messages == [{"Chat": "see https://example.com"}]

    def test_comment_markers_after_escaped_quote(self) -> None:
        config = parse_document('{"server_name": "say \\"hi\\" // still text"} // gone')
        assert config.server_name == 'say "hi" // still text'

    def test_explicit_nulls_read_as_defaults(self) -> None:
        config = parse_document(
            '{"print_to_center_html": null, "html_center_duration": null,'
            ' "show_html_when_dead": null, "ads": null, "server_name": "x"}'
        )
        assert config.print_to_center_html is False
        assert config.html_center_duration == 0.0
        assert config.show_html_when_dead is False
        assert config.ads == []
        assert config.server_name == "x"

    def test_missing_overlay_duration_is_zero(self) -> None:
        config = parse_document('{"print_to_center_html": true, "server_name": "x"}')
        assert config.html_center_duration == 0.0

    def test_invalid_json(self) -> None:
        with pytest.raises(ConfigDocumentError, match="not valid JSON"):
            parse_document("{ nope")

    def test_not_an_object(self) -> None:
        with pytest.raises(ConfigDocumentError, match="JSON object"):
            parse_document("[1, 2]")

    def test_empty_message_sets_rejected(self) -> None:
        with pytest.raises(ConfigDocumentError, match="validation"):
            parse_document('{"ads": [{"Interval": 10, "Messages": []}]}')

    def test_non_positive_interval_rejected(self) -> None:
        with pytest.raises(ConfigDocumentError):
            parse_document('{"ads": [{"Interval": 0, "Messages": [{"Chat": "a"}]}]}')

    def test_malformed_file_raises_and_is_kept(self, tmp_path) -> None:
        path = tmp_path / "marquee.json"
        broken = '{"server_name": "x", "ads": "this is not a list of ads at all"}'
        path.write_text(broken)
        with pytest.raises(ConfigDocumentError):
            ConfigStore(path).load()
        assert path.read_text() == broken


class TestModel:
    def test_generation_is_frozen(self) -> None:
        config = make_default_config()
        with pytest.raises(ValueError):
            config.server_name = "changed"

    def test_fallback_server_name(self) -> None:
        assert AdvertConfig().effective_server_name == "CS2Server"
        assert AdvertConfig().effective_server_subname == ""
