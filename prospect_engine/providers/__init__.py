# External collaborators
from .search import SearchProvider, TavilySearchProvider, create_search_provider
from .llm import TextGenerator, create_text_generator, strip_code_fence, parse_json_response
