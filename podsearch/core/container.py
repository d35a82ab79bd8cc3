from dependency_injector import containers, providers

from podsearch.core.config import configs
from podsearch.core.database import Database
from podsearch.services.clip_service import ClipBuilder
from podsearch.services.job_service import JobService
from podsearch.services.orchestrator import TranscriptionOrchestrator
from podsearch.services.search_service import SearchService
from podsearch.services.segmenter import Segmenter
from podsearch.services.storage_service import StorageService
from podsearch.services.transcription_client import AssemblyAIClient


class Container(containers.DeclarativeContainer):
    # Endpoints resolve providers through the request's app state, no wiring needed.
    config = providers.Object(configs)

    db = providers.Singleton(
        Database,
        db_url=config.provided.DATABASE_URL,
        echo=config.provided.DB_ECHO,
    )

    storage = providers.Singleton(
        StorageService,
        connection_string=config.provided.AZURE_STORAGE_CONNECTION_STRING,
    )

    transcription_client = providers.Singleton(
        AssemblyAIClient,
        api_key=config.provided.ASSEMBLYAI_API_KEY,
        base_url=config.provided.ASSEMBLYAI_BASE_URL,
        timeout=config.provided.ASSEMBLYAI_TIMEOUT_SECONDS,
    )

    segmenter = providers.Factory(
        Segmenter,
        max_seconds=config.provided.SEGMENT_MAX_SECONDS,
    )

    orchestrator = providers.Factory(
        TranscriptionOrchestrator,
        db=db,
        client=transcription_client,
        segmenter=segmenter,
        poll_interval=config.provided.TRANSCRIPTION_POLL_INTERVAL,
        max_poll_attempts=config.provided.TRANSCRIPTION_MAX_POLL_ATTEMPTS,
    )

    job_service = providers.Factory(
        JobService,
        db=db,
        orchestrator=orchestrator,
        stale_margin_seconds=config.provided.JOB_STALE_MARGIN_SECONDS,
    )

    clip_builder = providers.Factory(
        ClipBuilder,
        storage=storage,
        clip_container=config.provided.AZURE_CLIP_CONTAINER,
        strategy=config.provided.CLIP_STRATEGY,
        ffmpeg_bin=config.provided.FFMPEG_PATH,
        scratch_dir=config.provided.STORAGE_PATH,
    )

    search_service = providers.Factory(
        SearchService,
        default_limit=config.provided.SEARCH_DEFAULT_LIMIT,
        keyword_sample=config.provided.RELATED_KEYWORDS_SAMPLE,
        keyword_top=config.provided.RELATED_KEYWORDS_TOP,
    )
