
from fastapi import Request

from config import Settings
from integrations.github_contents import GitHubContentsClient, GitHubContentsStore
from services.storage import LocalFileStore, PredictionStore


def build_store(settings: Settings) -> PredictionStore:
    if settings.is_remote:
        return GitHubContentsStore(GitHubContentsClient.from_settings(settings))
    return LocalFileStore(settings.predictions_file)


def get_store(request: Request) -> PredictionStore:
    return request.app.state.store
