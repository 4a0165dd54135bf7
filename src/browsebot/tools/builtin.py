"""The fixed browser tool set, wired onto a registry."""

from browsebot.tools.bookmarks import (
    ADD_FOLDER_DECLARATION,
    CREATE_BOOKMARK_DECLARATION,
    DELETE_BOOKMARK_DECLARATION,
    SEARCH_BOOKMARKS_DECLARATION,
    UPDATE_BOOKMARK_DECLARATION,
    BookmarkStore,
    BookmarkTools,
)
from browsebot.tools.host import BrowserHost, PageBridge
from browsebot.tools.navigation import (
    NEW_SPLIT_DECLARATION,
    OPEN_LINK_DECLARATION,
    SEARCH_DECLARATION,
    NavigationTools,
)
from browsebot.tools.page import CLICK_ELEMENT_DECLARATION, FILL_FORM_DECLARATION, PageTools
from browsebot.tools.registry import ToolRegistry


def build_default_registry(
    host: BrowserHost,
    bridge: PageBridge,
    bookmarks: BookmarkStore,
) -> ToolRegistry:
    nav = NavigationTools(host)
    page = PageTools(bridge)
    marks = BookmarkTools(bookmarks)
    registry = ToolRegistry()

    registry.register(
        "search",
        "Performs a web search using a specified search engine and opens the results.",
        nav.search,
        SEARCH_DECLARATION,
    )
    registry.register(
        "openLink",
        "Opens a given URL in a specified location. "
        "Can also create a split view with the current tab.",
        nav.open_link,
        OPEN_LINK_DECLARATION,
    )
    registry.register(
        "newSplit",
        "Creates a split view by opening two new URLs in two new tabs, "
        "then arranging them side-by-side.",
        nav.new_split,
        NEW_SPLIT_DECLARATION,
    )
    registry.register(
        "getPageTextContent",
        "Retrieves the text content of the current web page to answer questions "
        "if the initial context is insufficient.",
        page.get_page_text_content,
    )
    registry.register(
        "getHTMLContent",
        "Retrieves the full HTML source of the current web page for detailed analysis. "
        "Use this tool very rarely, only when text content is insufficient.",
        page.get_html_content,
    )
    registry.register(
        "getYoutubeTranscript",
        "Retrieves the transcript of the current youtube video. "
        "Only use if current page is a youtube video.",
        page.get_youtube_transcript,
    )
    registry.register(
        "searchBookmarks",
        "Searches bookmarks based on a query.",
        marks.search_bookmarks,
        SEARCH_BOOKMARKS_DECLARATION,
    )
    registry.register("getAllBookmarks", "Retrieves all bookmarks.", marks.get_all_bookmarks)
    registry.register(
        "createBookmark",
        "Creates a new bookmark.",
        marks.create_bookmark,
        CREATE_BOOKMARK_DECLARATION,
    )
    registry.register(
        "addBookmarkFolder",
        "Creates a new bookmark folder.",
        marks.add_bookmark_folder,
        ADD_FOLDER_DECLARATION,
    )
    registry.register(
        "updateBookmark",
        "Updates an existing bookmark.",
        marks.update_bookmark,
        UPDATE_BOOKMARK_DECLARATION,
    )
    registry.register(
        "deleteBookmark",
        "Deletes a bookmark.",
        marks.delete_bookmark,
        DELETE_BOOKMARK_DECLARATION,
    )
    registry.register(
        "clickElement",
        "Clicks an element on the page.",
        page.click_element,
        CLICK_ELEMENT_DECLARATION,
    )
    registry.register(
        "fillForm",
        "Fills a form input on the page.",
        page.fill_form,
        FILL_FORM_DECLARATION,
    )
    return registry
