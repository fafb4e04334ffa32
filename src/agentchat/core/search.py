"""Web search collaborator backed by SerpAPI.

The search never raises: every failure is returned as a human-readable error
string so the model can be told what went wrong.
"""

import logging
from typing import Any

import httpx

from agentchat.config import SearchSettings

logger = logging.getLogger(__name__)

MAX_RESULTS = 5


def format_search_results(query: str, data: dict[str, Any], limit: int = MAX_RESULTS) -> str:
    """Format a SerpAPI response as plain text for the model.

    Organic results are preferred, then the answer box, then the knowledge graph.

    Args:
        query: The query that was searched.
        data: Decoded SerpAPI JSON response.
        limit: Maximum number of organic results to include.

    Returns:
        Descriptive text of the results.
    """
    results = f'Search results for "{query}":\n\n'

    organic = data.get("organic_results") or []
    answer_box = data.get("answer_box")
    knowledge_graph = data.get("knowledge_graph")

    if organic:
        for index, item in enumerate(organic[:limit], start=1):
            results += f"{index}. {item.get('title') or 'No title'}\n"
            if item.get("snippet"):
                results += f"   {item['snippet']}\n"
            if item.get("link"):
                results += f"   URL: {item['link']}\n"
            results += "\n"
    elif answer_box:
        if answer_box.get("answer"):
            results += f"Answer: {answer_box['answer']}\n"
        if answer_box.get("snippet"):
            results += f"\n{answer_box['snippet']}\n"
        if answer_box.get("link"):
            results += f"\nSource: {answer_box['link']}\n"
    elif knowledge_graph:
        if knowledge_graph.get("title"):
            results += f"{knowledge_graph['title']}\n"
        if knowledge_graph.get("description"):
            results += f"{knowledge_graph['description']}\n"
    else:
        return f'No search results found for: "{query}"'

    return results.strip()


def _error_message(response: httpx.Response) -> str:
    """Extract SerpAPI's error message from a failed response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase or "Request failed"


async def web_search(
    query: str,
    settings: SearchSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Search the web and return formatted results or an error string.

    Args:
        query: The search query.
        settings: SerpAPI configuration.
        transport: Optional httpx transport override.

    Returns:
        Formatted search results, or a descriptive error string.
    """
    if not settings.api_key:
        return (
            "Error: SERPAPI_KEY environment variable is required for web search. "
            "Please configure it in your .env file. Get your API key at https://serpapi.com/"
        )

    params = {
        "api_key": settings.api_key,
        "engine": settings.engine,
        "q": query,
        "num": settings.num_results,
    }

    logger.info("Performing web search", extra={"tool": "web_search"})

    try:
        async with httpx.AsyncClient(
            timeout=settings.timeout_seconds,
            transport=transport,
        ) as client:
            response = await client.get(settings.base_url, params=params)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.warning(f"Web search failed with status {status}")
        return (
            f"Error performing web search (Status {status}): {_error_message(e.response)}. "
            "Please check your SERPAPI_KEY."
        )
    except httpx.TimeoutException:
        logger.warning("Web search timed out")
        return (
            f'Error performing web search for: "{query}" '
            f"(timed out after {settings.timeout_seconds:.0f}s). Please try again."
        )
    except httpx.HTTPError as e:
        logger.warning(f"Web search request failed: {type(e).__name__}: {e}")
        return (
            f'Error performing web search for: "{query}" ({type(e).__name__}: {e}). '
            "Please try again or check your SERPAPI_KEY configuration."
        )
    except ValueError:
        logger.warning("Web search returned an unreadable response")
        return f'Error performing web search for: "{query}". The search service returned an invalid response.'

    if not isinstance(data, dict):
        return f'No search results found for: "{query}"'

    return format_search_results(query, data, limit=settings.num_results)
