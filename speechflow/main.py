"""Application entry point: logging setup and the pipeline walkthrough.

The walkthrough runs the same three stages in every orchestration style on
the real event loop, narrating what the caller does while the stages are
pending.
"""

from __future__ import annotations

import asyncio
import logging
from logging.handlers import RotatingFileHandler
import sys
from pathlib import Path
from typing import Optional

from .config.dependencies import build_pipeline_services
from .config.settings import settings
from .pipelines.speech import (
    CallbackPipeline,
    ChainedPipeline,
    PipelineOutcome,
    PipelineServices,
    SequentialPipeline,
    SpeechPipeline,
    run_concurrently,
)
from .services.contracts import StageFailure, Transcript

logger = logging.getLogger(__name__)
narrator = logging.getLogger("speechflow.progress.demo")


def _configure_logging() -> None:
    """Stream progress lines bare to stdout and keep rotating log files."""

    logging.getLogger().handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )

    log_path = Path(settings.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=1_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(file_handler)
    root_logger.setLevel(logging.DEBUG if settings.debug else logging.WARNING)

    progress_log_path = Path(settings.progress_log_file)
    progress_log_path.parent.mkdir(parents=True, exist_ok=True)
    progress_file = RotatingFileHandler(
        progress_log_path,
        maxBytes=500_000,
        backupCount=5,
        encoding="utf-8",
    )
    progress_file.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
    )
    progress_stdout = logging.StreamHandler(sys.stdout)
    progress_stdout.setFormatter(logging.Formatter("%(message)s"))

    progress_logger = logging.getLogger("speechflow.progress")
    progress_logger.handlers.clear()
    progress_logger.addHandler(progress_stdout)
    progress_logger.addHandler(progress_file)
    progress_logger.setLevel(logging.INFO)
    progress_logger.propagate = False


async def demo_single_callback(services: PipelineServices) -> Transcript:
    """One stage, one completion handler."""

    done: asyncio.Future = asyncio.get_running_loop().create_future()

    def on_transcript(transcript: Transcript) -> None:
        narrator.info("Callback: Received transcription!")
        narrator.info("Transcription: %s", transcript.model_dump())
        done.set_result(transcript)

    narrator.info("Before sending audio for transcription")
    services.transcription.start("audio_chunk_001", on_transcript, done.set_exception)
    narrator.info("After sending audio for transcription (but before it's done)")
    return await done


async def demo_single_deferred(services: PipelineServices) -> None:
    """One stage consumed through ``then`` and ``catch``."""

    def fulfilled(transcript: Transcript) -> None:
        narrator.info("Deferred fulfilled: Transcription received!")
        narrator.info("Result: %s", transcript.model_dump())

    def rejected(error: BaseException) -> None:
        narrator.error("Deferred rejected: ASR Error!")
        narrator.error("%s", error)

    narrator.info("Before initiating ASR")
    narrator.info("Requesting transcription for audio_promise_001...")
    pending = services.transcription.defer("audio_promise_001")
    settled = pending.then(fulfilled).catch(rejected)
    narrator.info("After initiating ASR (Deferred pending)")
    await settled


async def demo_callback_pipeline(services: PipelineServices) -> PipelineOutcome:
    outcome: asyncio.Future = asyncio.get_running_loop().create_future()

    narrator.info("Starting ASR & NLP processing pipeline...")
    CallbackPipeline(services).run("meeting_audio_003", outcome.set_result)
    narrator.info("Initiated pipeline... (main thread continues its work)")
    return await outcome


async def demo_chained_pipeline(services: PipelineServices) -> PipelineOutcome:
    narrator.info("Starting ASR/NLP Deferred chain...")
    chain = ChainedPipeline(services).run("meeting_chain_004")
    narrator.info("Initiated ASR/NLP Deferred chain... (execution continues)")
    return await chain


async def demo_sequential_pipeline(services: PipelineServices) -> PipelineOutcome:
    narrator.info("Before calling async pipeline function")
    task = asyncio.create_task(SequentialPipeline(services).run("meeting_async_005"))
    narrator.info("After calling async pipeline function (pipeline is running in the background)")
    return await task


async def demo_concurrent_runs(services: PipelineServices) -> list[PipelineOutcome]:
    narrator.info("Starting two overlapping async pipelines...")
    return await run_concurrently(
        SequentialPipeline.style,
        services,
        ["meeting_async_006", "meeting_async_007"],
    )


async def run_demo(services: Optional[PipelineServices] = None) -> list[PipelineOutcome]:
    """Run every walkthrough section in order and return the pipeline outcomes."""

    services = services or build_pipeline_services()
    for stage in SpeechPipeline.describe():
        logger.debug("Stage %s: %s (%s)", stage.order, stage.name, stage.module)

    outcomes: list[PipelineOutcome] = []
    try:
        await demo_single_callback(services)
    except StageFailure as exc:
        narrator.error("Callback: Transcription failed: %s", exc)
    await demo_single_deferred(services)
    outcomes.append(await demo_callback_pipeline(services))
    outcomes.append(await demo_chained_pipeline(services))
    outcomes.append(await demo_sequential_pipeline(services))
    outcomes.extend(await demo_concurrent_runs(services))

    for outcome in outcomes:
        if outcome.success:
            narrator.info(
                "Outcome %s: text=%r sentiment=%s",
                outcome.request,
                outcome.text,
                outcome.sentiment.value,
            )
        else:
            narrator.error(
                "Outcome %s: failed at %s: %s",
                outcome.request,
                outcome.provenance,
                outcome.error,
            )
    return outcomes


def main() -> None:
    """Configure logging and run the walkthrough on a fresh event loop."""

    _configure_logging()
    asyncio.run(run_demo())


if __name__ == "__main__":
    main()
