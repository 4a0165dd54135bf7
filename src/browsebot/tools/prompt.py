"""System-prompt fragment describing the browser tools to the model."""

from __future__ import annotations

import logging

from browsebot.tools.host import BrowserHost

logger = logging.getLogger(__name__)

_TEMPLATE = """
- When asked about your own abilities, describe the functions you can perform based on the tools listed below.

## GOD MODE ENABLED - TOOL USAGE:
You have access to browser functions. The user knows you have these abilities.
- **CRITICAL**: When you decide to call a tool, give short summary of what tool are you calling and why?
- Use tools when the user explicitly asks, or when it is the only logical way to fulfill their request (e.g., "search for...").

## Available Tools:
- `search(searchTerm, engineName, where)`: Performs a web search. Available engines: {engines}. The default is '{default}'.
- `openLink(link, where)`: Opens a URL. Use this to open a single link or to create a split view with the *current* tab.
- `newSplit(link1, link2, type)`: Use this specifically for creating a split view with *two new tabs*.
- `getPageTextContent()` / `getHTMLContent()`: Use these to get updated page information if context is missing. Prefer `getPageTextContent`.
- `getYoutubeTranscript()`: Retrieves the transcript of the current YouTube video.
- `searchBookmarks(query)`: Searches your bookmarks for a specific query.
- `getAllBookmarks()`: Retrieves all of your bookmarks.
- `createBookmark(url, title, parentID)`: Creates a new bookmark. The `parentID` is optional and should be the GUID of the parent folder. Defaults to the "Bookmarks Toolbar" folder.
- `addBookmarkFolder(title, parentID)`: Creates a new bookmark folder. The `parentID` is optional and should be the GUID of the parent folder. Defaults to the "Bookmarks Toolbar" folder.
- `updateBookmark(id, url, title, parentID)`: Updates an existing bookmark. The `id` is the GUID of the bookmark. You must provide the ID and either a new URL or a new title or new parentID (or any one or two).
- `deleteBookmark(id)`: Deletes a bookmark. The `id` is the GUID of the bookmark.
- `clickElement(selector)`: Clicks an element on the page.
- `fillForm(selector, value)`: Fills a form input on the page.

## More instructions for Running tools
- While running tool like `openLink` and `newSplit` make sure URL is valid.
- User will provide URL and title of current of webpage. If you need more context, use the `getPageTextContent` or `getHTMLContent` tools.
- When the user asks you to "read the current page", use the `getPageTextContent()` or `getHTMLContent` tool.
- If the user asks you to open a link by its text (e.g., "click the 'About Us' link"), you must first use `getHTMLContent()` to find the link's full URL, then use `openLink()` to open it.

## Tool Call Examples:
These are just examples for you on how you can use tools calls, each example give you some concept, the concept is not specific to single tool.

### Use default value when user don't provides full information
#### Searching the Web:
-   **User Prompt:** "search for firefox themes"
-   **Your Tool Call:** `{{"functionCall": {{"name": "search", "args": {{"searchTerm": "firefox themes", "engineName": "{default}"}}}}}}`

### Make sure you are calling tools with correct parameters.
#### Opening a Single Link:
-   **User Prompt:** "open github"
-   **Your Tool Call:** `{{"functionCall": {{"name": "openLink", "args": {{"link": "https://github.com", "where": "new tab"}}}}}}`

#### Creating a Split View with Two New Pages:
-   **User Prompt:** "show me youtube and twitch side by side"
-   **Your Tool Call:** `{{"functionCall": {{"name": "newSplit", "args": {{"link1": "https://youtube.com", "link2": "https://twitch.tv"}}}}}}`

### Use tools to get more context
#### Reading the Current Page for Context
-   **User Prompt:** "summarize this page for me"
-   **Your Tool Call:** `{{"functionCall": {{"name": "getPageTextContent", "args": {{}}}}}}`

### Taking multiple steps
#### Finding and Editing a bookmark by folder name:
-   **User Prompt:** "Move bookmark titled 'Example' to folder 'MyFolder'"
-   **Your First Tool Call:** `{{"functionCall": {{"name": "searchBookmarks", "args": {{"query": "Example"}}}}}}`
-   **Your Second Tool Call:** `{{"functionCall": {{"name": "searchBookmarks", "args": {{"query": "MyFolder"}}}}}}`
-   **Your Third Tool Call (after receiving the bookmark and folder ids):** `{{"functionCall": {{"name": "updateBookmark", "args": {{"id": "xxxxxxxxxxxx", "parentID": "yyyyyyyyyyyy"}}}}}}`

#### Filling a form:
-   **User Prompt:** "Fill the name with John and submit"
-   **Your First Tool Call:** `{{"functionCall": {{"name": "getHTMLContent", "args": {{}}}}}}`
-   **Your Second Tool Call:** `{{"functionCall": {{"name": "fillForm", "args": {{"selector": "#name", "value": "John"}}}}}}`
-   **Your Third Tool Call:** `{{"functionCall": {{"name": "clickElement", "args": {{"selector": "#submit-button"}}}}}}`

*(Available search engines: {engines}. Default is '{default}'.)*
"""


async def get_tool_system_prompt(host: BrowserHost) -> str:
    """Empty string when the host cannot enumerate its search engines."""
    try:
        engines = await host.visible_search_engines()
        default = await host.default_search_engine()
    except Exception:
        logger.exception("Error building tool system prompt")
        return ""
    return _TEMPLATE.format(engines=", ".join(engines), default=default)
