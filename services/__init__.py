from services.news import FetchReport, NewsService, OrchestratorState
from services.podcast import PodcastGenerationError, PodcastService

__all__ = [
    "FetchReport",
    "NewsService",
    "OrchestratorState",
    "PodcastGenerationError",
    "PodcastService",
]
