"""Tests for the context resolver and its rule tables."""

from __future__ import annotations

import pytest

from overnote.context import ContextKind, ContextResolver, WindowSignal, resolve
from overnote.context.rules import (
    SEARCH_PROVIDERS,
    AppTable,
    DocumentApp,
    generic_search_query,
    site_name,
)

GOOGLE = "https://www.google.com/search?q=x"


@pytest.fixture
def resolver():
    return ContextResolver()


# ─── WindowSignal ─────────────────────────────────────────────────────


class TestWindowSignal:
    def test_blank_fields_become_none(self):
        s = WindowSignal(title="  ", url="", owner_name=" Finder ")
        assert s.title is None
        assert s.url is None
        assert s.owner_name == "Finder"

    def test_from_dict_owner_object(self):
        s = WindowSignal.from_dict({"title": "x", "owner": {"name": "Safari"}})
        assert s.owner_name == "Safari"
        assert s.url is None

    def test_from_dict_owner_string(self):
        s = WindowSignal.from_dict({"owner": "Notepad", "url": "https://a.io"})
        assert s.to_dict() == {"title": None, "url": "https://a.io", "owner_name": "Notepad"}


# ─── Self-exclusion ───────────────────────────────────────────────────


class TestSelfExclusion:
    def test_own_process_wins_over_search(self, resolver):
        ctx = resolver.resolve(
            WindowSignal(title="cats - Google Search", url=GOOGLE, owner_name="Electron")
        )
        assert ctx.kind is ContextKind.NOTES_WINDOW
        assert ctx.label == "Notes Window"

    def test_case_insensitive(self, resolver):
        assert resolver.resolve(WindowSignal(owner_name="overnote")).kind is ContextKind.NOTES_WINDOW

    def test_substring_is_not_self(self, resolver):
        ctx = resolver.resolve(WindowSignal(title="x", owner_name="Electron Fiddle"))
        assert ctx.kind is ContextKind.APPLICATION


# ─── Search Queries ───────────────────────────────────────────────────


class TestSearch:
    def test_google(self, resolver):
        ctx = resolver.resolve(WindowSignal(title="cats - Google Search", url=GOOGLE))
        assert ctx.label == "Cats | Google"
        assert ctx.kind is ContextKind.SEARCH_QUERY
        assert ctx.source.query == "cats"
        assert ctx.source.site_name == "Google"

    def test_single_character_query_kept_as_is(self, resolver):
        ctx = resolver.resolve(WindowSignal(title="a - Google Search", url=GOOGLE))
        assert ctx.label == "a | Google"

    def test_quotes_are_stripped(self, resolver):
        ctx = resolver.resolve(WindowSignal(title='"cats" - Google Search', url=GOOGLE))
        assert ctx.label == "Cats | Google"

    @pytest.mark.parametrize(
        "url,title,label",
        [
            (
                "https://en.wikipedia.org/w/index.php?search=python",
                "Search results for python - Wikipedia",
                "Python | Wikipedia",
            ),
            (
                "https://www.youtube.com/results?search_query=lofi",
                '"lofi beats" - YouTube',
                "Lofi beats | Youtube",
            ),
            ("https://duckduckgo.com/?q=rust", "rust at DuckDuckGo", "Rust | Duckduckgo"),
            ("https://www.bing.com/search?q=weather", "weather - Bing", "Weather | Bing"),
            (
                "https://search.yahoo.com/search?p=tea",
                "tea - Yahoo Search Results",
                "Tea | Yahoo",
            ),
            ("https://www.amazon.com/s?k=kettle", "Amazon.com : kettle", "Kettle | Amazon"),
            ("https://www.amazon.co.uk/s?k=mug", "Amazon.co.uk : mug", "Mug | Amazon"),
            ("https://www.ebay.com/sch/i.html?_nkw=lamp", "lamp | eBay", "Lamp | Ebay"),
            (
                "https://www.linkedin.com/search/results/all/?keywords=python",
                "python | LinkedIn",
                "Python | Linkedin",
            ),
        ],
    )
    def test_providers(self, resolver, url, title, label):
        assert resolver.resolve(WindowSignal(title=title, url=url)).label == label

    def test_generic_search_fallback(self, resolver):
        ctx = resolver.resolve(
            WindowSignal(title="kittens - Brave Search", url="https://search.brave.com/search?q=k")
        )
        assert ctx.label == "Kittens | Brave"

    def test_blank_query_falls_through(self, resolver):
        ctx = resolver.resolve(
            WindowSignal(title=" - Google Search", url=GOOGLE, owner_name="Google Chrome")
        )
        assert ctx.kind is ContextKind.APPLICATION
        assert ctx.label == "Google Chrome"

    def test_provider_title_mismatch_falls_through(self, resolver):
        ctx = resolver.resolve(
            WindowSignal(title="Google", url="https://www.google.com/webhp", owner_name="Safari")
        )
        assert ctx.label == "Safari"

    def test_provider_order(self):
        names = [p.name for p in SEARCH_PROVIDERS]
        assert names[0] == "google"
        assert set(names) == {
            "google", "wikipedia", "youtube", "duckduckgo", "bing",
            "yahoo", "amazon", "ebay", "linkedin",
        }

    def test_generic_requires_search_word(self):
        assert generic_search_query("notes - Docs") is None
        assert generic_search_query("notes - Site Search") == "notes"
        assert generic_search_query(None) is None


class TestSiteName:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://www.google.com/search", "google"),
            ("https://mail.google.com/", "google"),
            ("https://www.amazon.co.uk/s?k=x", "amazon"),
            ("https://news.bbc.co.uk", "bbc"),
            ("http://localhost:8000/search", "localhost"),
            ("duckduckgo.com/?q=x", "duckduckgo"),
            (None, "Unknown"),
            ("", "Unknown"),
            ("http://[::1", "Unknown"),
        ],
    )
    def test_site_name(self, url, expected):
        assert site_name(url) == expected


# ─── Documents & Applications ─────────────────────────────────────────


class TestDocuments:
    def test_word_report(self, resolver):
        ctx = resolver.resolve(WindowSignal(title="Report.docx", owner_name="Microsoft Word"))
        assert ctx.label == "Report | Word"
        assert ctx.kind is ContextKind.DOCUMENT

    def test_notepad(self, resolver):
        assert resolver.resolve(WindowSignal(title="b.txt", owner_name="Notepad")).label == "b | Notepad"

    def test_code_keeps_extension(self, resolver):
        ctx = resolver.resolve(
            WindowSignal(title="main.py - overnote - Visual Studio Code", owner_name="Code")
        )
        assert ctx.label == "main.py | VSCode"

    def test_code_workspace_is_untitled(self, resolver):
        ctx = resolver.resolve(WindowSignal(title="overnote (Workspace)", owner_name="Code"))
        assert ctx.label == "Untitled | VSCode"

    def test_dotfile_keeps_name(self, resolver):
        ctx = resolver.resolve(WindowSignal(title=".bashrc", owner_name="TextEdit"))
        assert ctx.label == ".bashrc | TextEdit"

    def test_search_beats_document(self, resolver):
        ctx = resolver.resolve(
            WindowSignal(title="cats - Google Search", url=GOOGLE, owner_name="Preview")
        )
        assert ctx.kind is ContextKind.SEARCH_QUERY


class TestApplications:
    def test_owner_verbatim(self, resolver):
        ctx = resolver.resolve(WindowSignal(title="Inbox (3)", owner_name="Mail"))
        assert ctx.label == "Mail"
        assert ctx.kind is ContextKind.APPLICATION

    def test_chatgpt_pinned(self, resolver):
        ctx = resolver.resolve(WindowSignal(title="Secret plans", owner_name="ChatGPT Helper"))
        assert ctx.label == "ChatGPT"

    def test_alias(self):
        resolver = ContextResolver(AppTable(aliases={"iTerm2": "iTerm"}))
        assert resolver.resolve(WindowSignal(title="zsh", owner_name="iTerm2")).label == "iTerm"

    def test_default_code_alias_without_document_entry(self):
        table = AppTable(document_apps=())
        ctx = ContextResolver(table).resolve(WindowSignal(title="main.py", owner_name="Code"))
        assert ctx.label == "VSCode"
        assert ctx.kind is ContextKind.APPLICATION


class TestRawTitle:
    def test_title_only(self, resolver):
        ctx = resolver.resolve(WindowSignal(title="Something"))
        assert ctx.label == "Something"
        assert ctx.kind is ContextKind.RAW_TITLE

    def test_url_only(self, resolver):
        assert resolver.resolve(WindowSignal(url="https://example.com")).label == "https://example.com"

    def test_owner_only(self, resolver):
        assert resolver.resolve(WindowSignal(owner_name="Finder")).label == "Unknown Context"

    def test_empty(self, resolver):
        assert resolver.resolve(WindowSignal()).label == "Unknown Context"


# ─── Properties ───────────────────────────────────────────────────────


SIGNALS = [
    WindowSignal(),
    WindowSignal(title="cats - Google Search", url=GOOGLE),
    WindowSignal(title="\"\" - Google Search", url=GOOGLE),
    WindowSignal(title="x", url="not a url at all", owner_name="?"),
    WindowSignal(title="a.b.c.d", owner_name="Preview"),
    WindowSignal(title="search - ", url="http://[::1"),
    WindowSignal(title="Amazon.com :", url="https://amazon.com/s?k="),
    WindowSignal(url="ftp://"),
]


class TestProperties:
    @pytest.mark.parametrize("signal", SIGNALS)
    def test_total_and_non_empty(self, resolver, signal):
        ctx = resolver.resolve(signal)
        assert ctx.label
        assert ctx.label.strip()

    @pytest.mark.parametrize("signal", SIGNALS)
    def test_deterministic(self, resolver, signal):
        assert resolver.resolve(signal) == resolver.resolve(signal)

    def test_module_level_resolve(self):
        assert resolve(WindowSignal(title="b.txt", owner_name="Notepad")).label == "b | Notepad"

    def test_to_dict(self, resolver):
        d = resolver.resolve(WindowSignal(title="cats - Google Search", url=GOOGLE)).to_dict()
        assert d["kind"] == "search_query"
        assert d["source"]["query"] == "cats"


# ─── Config Tables ────────────────────────────────────────────────────


class TestAppTableConfig:
    def test_user_document_apps_first(self):
        table = AppTable.from_config(
            {"document_apps": [{"match": "Obsidian", "label": "Obsidian"}, {"label": "no match"}]}
        )
        assert table.document_apps[0].match == "Obsidian"
        ctx = ContextResolver(table).resolve(WindowSignal(title="Ideas.md", owner_name="Obsidian"))
        assert ctx.label == "Ideas | Obsidian"

    def test_document_apps_mapping(self):
        table = AppTable.from_config({"document_apps": {"Typora": "Typora"}})
        ctx = ContextResolver(table).resolve(WindowSignal(title="a.md", owner_name="Typora"))
        assert ctx.label == "a | Typora"

    def test_empty_label_falls_back_to_match(self):
        app = DocumentApp.from_dict({"match": "Typora", "label": ""})
        assert app.label == "Typora"

    def test_pinned_and_self_names_merge(self):
        table = AppTable.from_config({"pinned_apps": {"claude": "Claude"}, "self_names": ["MyNotes"]})
        resolver = ContextResolver(table)
        assert resolver.resolve(WindowSignal(title="t", owner_name="Claude")).label == "Claude"
        assert resolver.resolve(WindowSignal(title="t", owner_name="ChatGPT")).label == "ChatGPT"
        assert table.is_self("mynotes")
        assert table.is_self("Electron")

    def test_empty_config_is_defaults(self):
        assert AppTable.from_config({}) == AppTable()
