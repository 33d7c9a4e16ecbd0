from clipfetch.i18n import I18n, i18n


def test_japanese_catalogue_is_used():
    assert i18n.get("error.invalid_url", locale="ja") == "無効なYouTube URLです"
    assert i18n.get("error.too_long", locale="ja", minutes="60") == "動画が長すぎます (最大 60 分)"


def test_every_english_key_exists_in_japanese():
    def keys(catalogue, prefix=""):
        for name, value in catalogue.items():
            if isinstance(value, dict):
                yield from keys(value, f"{prefix}{name}.")
            else:
                yield f"{prefix}{name}"

    assert set(keys(i18n.locales["en"])) <= set(keys(i18n.locales["ja"]))


def test_missing_key_falls_back_to_english(monkeypatch):
    monkeypatch.setattr(i18n, "default_locale", "ja")
    monkeypatch.setitem(i18n.locales, "ja", {"error": {}})
    assert i18n.get("error.internal", locale="ja") == "Internal server error"
    assert i18n.get("error.internal") == "Internal server error"


def test_unknown_default_locale_does_not_recurse(monkeypatch):
    monkeypatch.setattr(i18n, "default_locale", "fr")
    assert i18n.get("error.internal") == "Internal server error"
    assert i18n.get("no.such.key") == "no.such.key"
    assert i18n.get("no.such.key", locale="ja") == "no.such.key"


def test_missing_placeholder_returns_template():
    assert i18n.get("error.too_long") == "Video too long (max {minutes} minutes)"


def test_empty_catalogue_returns_key():
    empty = I18n()
    empty.locales = {}
    assert empty.get("error.internal") == "error.internal"
