"""DOCX → PDF conversion through an ordered chain of external renderers.

Each conversion is a `ConversionJob` that owns two temporary files. The
orchestrator writes the input, tries renderers in priority order until one
exits cleanly and leaves a readable, non-empty output, then reads it back.
Both temporary files are removed on every exit path.

Renderers are started with argument vectors, never through a shell, and
every attempt is bounded by a timeout and a shared concurrency semaphore.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from studydoc.errors import CleanupWarning, ConversionExhaustedError, RendererError
from studydoc.log import get_logger

from .buffer import BufferManager

logger = get_logger(__name__)

PDF_MIME = "application/pdf"
_STDERR_TAIL = 500


class JobStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class JobState(str, Enum):
    CREATED = "created"
    INPUT_WRITTEN = "input_written"
    CONVERTING = "converting"
    SUCCEEDED = "succeeded"
    OUTPUT_READ = "output_read"
    FAILED = "failed"
    CLEANED_UP = "cleaned_up"


@dataclass
class ConversionJob:
    input_bytes: bytes
    input_path: str
    output_path: str
    attempted_renderers: List[str] = field(default_factory=list)
    status: JobStatus = JobStatus.PENDING
    renderer: Optional[str] = None
    failures: Dict[str, str] = field(default_factory=dict)
    warnings: List[CleanupWarning] = field(default_factory=list)
    transitions: List[JobState] = field(default_factory=lambda: [JobState.CREATED])

    @property
    def state(self) -> JobState:
        return self.transitions[-1]

    def move(self, state: JobState) -> None:
        self.transitions.append(state)


class Renderer:
    """One way of turning the input file into the output file."""

    name = "renderer"

    async def render(self, input_path: str, output_path: str, timeout: Optional[float]) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class CommandRenderer(Renderer):
    """Renderer backed by an external program run as an argument vector."""

    def __init__(self, executable: str, name: Optional[str] = None) -> None:
        self.executable = executable
        if name:
            self.name = name

    def build_args(self, input_path: str, output_path: str) -> List[str]:
        raise NotImplementedError

    async def render(self, input_path: str, output_path: str, timeout: Optional[float]) -> None:
        args = self.build_args(input_path, output_path)
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise RendererError(self.name, f"could not start {args[0]}: {e}") from e

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout)
        except asyncio.TimeoutError:
            raise RendererError(self.name, f"timed out after {timeout:g}s") from None
        finally:
            if proc.returncode is None:
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass
                await proc.wait()

        if proc.returncode != 0:
            detail = (stderr or b"").decode("utf-8", "replace").strip()[-_STDERR_TAIL:]
            message = f"exited with code {proc.returncode}"
            if detail:
                message += f": {detail}"
            raise RendererError(self.name, message, returncode=proc.returncode)


class LibreOfficeRenderer(CommandRenderer):
    """soffice in headless mode.

    Each job runs against its own user profile directory next to the job
    files. Two soffice processes sharing a profile can exit 0 without
    converting anything.
    """

    name = "libreoffice"

    def __init__(self, executable: str = "soffice", name: Optional[str] = None, isolate_profile: bool = True) -> None:
        super().__init__(executable, name)
        self.isolate_profile = isolate_profile

    @staticmethod
    def profile_dir(output_path: str) -> str:
        return os.path.splitext(output_path)[0] + "-profile"

    def build_args(self, input_path: str, output_path: str) -> List[str]:
        args = [self.executable]
        if self.isolate_profile:
            args.append("-env:UserInstallation=" + Path(self.profile_dir(output_path)).as_uri())
        args += [
            "--headless",
            "--convert-to", "pdf",
            "--outdir", os.path.dirname(output_path),
            input_path,
        ]
        return args

    async def render(self, input_path: str, output_path: str, timeout: Optional[float]) -> None:
        try:
            await super().render(input_path, output_path, timeout)
        finally:
            if self.isolate_profile:
                self._remove_profile(self.profile_dir(output_path))
        # soffice names the output after the input stem inside --outdir
        produced = os.path.join(
            os.path.dirname(output_path),
            os.path.splitext(os.path.basename(input_path))[0] + ".pdf",
        )
        if produced != output_path and os.path.exists(produced):
            os.replace(produced, output_path)

    @staticmethod
    def _remove_profile(path: str) -> None:
        if not os.path.exists(path):
            return
        try:
            shutil.rmtree(path)
        except OSError as e:
            logger.warning("Could not remove soffice profile %s: %s", path, e)


class PandocRenderer(CommandRenderer):
    name = "pandoc"

    def __init__(self, executable: str = "pandoc", pdf_engine: str = "wkhtmltopdf", name: Optional[str] = None) -> None:
        super().__init__(executable, name)
        self.pdf_engine = pdf_engine

    def build_args(self, input_path: str, output_path: str) -> List[str]:
        return [self.executable, input_path, "-o", output_path, f"--pdf-engine={self.pdf_engine}"]


class WordRenderer(Renderer):
    """Microsoft Word automation through docx2pdf (Windows/macOS only)."""

    name = "word"

    def __init__(self, converter: Optional[Callable[[str, str], None]] = None, name: Optional[str] = None) -> None:
        self.converter = converter
        if name:
            self.name = name

    def _load_converter(self) -> Callable[[str, str], None]:
        if self.converter is not None:
            return self.converter
        try:
            from docx2pdf import convert
        except ImportError as e:
            raise RendererError(self.name, "docx2pdf is not installed") from e
        return convert

    async def render(self, input_path: str, output_path: str, timeout: Optional[float]) -> None:
        """Convert in a worker thread, which keeps running after a timeout.

        The worker writes to a private file and only moves it to output_path
        while the attempt is still live. An abandoned worker deletes its own
        file, so it can neither leave a temp file behind nor clobber output
        from a later renderer.
        """
        convert = self._load_converter()
        private_path = os.path.splitext(output_path)[0] + "-word.pdf"
        lock = threading.Lock()
        abandoned = threading.Event()
        finished = threading.Event()

        def work() -> None:
            try:
                convert(input_path, private_path)
            except BaseException:
                with lock:
                    finished.set()
                    _discard(private_path)
                raise
            with lock:
                finished.set()
                if abandoned.is_set():
                    _discard(private_path)
                elif os.path.exists(private_path):
                    os.replace(private_path, output_path)

        try:
            await asyncio.wait_for(asyncio.to_thread(work), timeout)
        except asyncio.TimeoutError:
            raise RendererError(self.name, f"timed out after {timeout:g}s") from None
        except Exception as e:
            raise RendererError(self.name, f"{type(e).__name__}: {e}") from e
        finally:
            with lock:
                if not finished.is_set():
                    abandoned.set()
                    _discard(private_path)


def _discard(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove %s: %s", path, e)


class ConversionOrchestrator:
    """Drive conversion jobs through a fixed renderer priority order."""

    def __init__(
        self,
        renderers: Sequence[Renderer],
        buffer: Optional[BufferManager] = None,
        timeout: float | None = 60.0,
        max_concurrent: int = 2,
    ) -> None:
        if not renderers:
            raise ValueError("At least one renderer is required.")
        self.renderers = list(renderers)
        self.buffer = buffer or BufferManager()
        self.timeout = timeout if timeout is not None and timeout > 0 else None
        self.max_concurrent = max(1, int(max_concurrent))
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._semaphore_loop: Optional[asyncio.AbstractEventLoop] = None

    def _limiter(self) -> asyncio.Semaphore:
        # a semaphore is bound to one event loop; each loop gets its own
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._semaphore_loop is not loop:
            self._semaphore = asyncio.Semaphore(self.max_concurrent)
            self._semaphore_loop = loop
        return self._semaphore

    @property
    def renderer_names(self) -> List[str]:
        return [r.name for r in self.renderers]

    def new_job(self, data: bytes, input_suffix: str = ".docx", output_suffix: str = ".pdf") -> ConversionJob:
        input_path, output_path = self.buffer.job_paths(input_suffix, output_suffix)
        return ConversionJob(input_bytes=data, input_path=input_path, output_path=output_path)

    async def convert(self, data: bytes, input_suffix: str = ".docx", output_suffix: str = ".pdf") -> bytes:
        return await self.run(self.new_job(data, input_suffix, output_suffix))

    async def run(self, job: ConversionJob) -> bytes:
        """Run one job to completion and return the output bytes.

        Raises ConversionExhaustedError when no renderer produced output.
        Temporary files are always removed before returning or raising.
        """
        try:
            with open(job.input_path, "wb") as f:
                f.write(job.input_bytes)
            job.move(JobState.INPUT_WRITTEN)

            for renderer in self.renderers:
                data = await self._attempt(job, renderer)
                if data is not None:
                    job.status = JobStatus.SUCCEEDED
                    job.renderer = renderer.name
                    job.move(JobState.SUCCEEDED)
                    job.move(JobState.OUTPUT_READ)
                    logger.info("Converted with %s (%d bytes)", renderer.name, len(data))
                    return data

            job.status = JobStatus.FAILED
            job.move(JobState.FAILED)
            logger.error("All renderers failed: %s", "; ".join(f"{k}: {v}" for k, v in job.failures.items()))
            raise ConversionExhaustedError(job.attempted_renderers, job.failures)
        finally:
            if job.status is JobStatus.PENDING:
                job.status = JobStatus.FAILED
                job.move(JobState.FAILED)
            job.warnings.extend(self.buffer.cleanup(job.input_path, job.output_path))
            job.move(JobState.CLEANED_UP)

    async def _attempt(self, job: ConversionJob, renderer: Renderer) -> Optional[bytes]:
        job.attempted_renderers.append(renderer.name)
        job.move(JobState.CONVERTING)
        # output left behind by an earlier failed attempt must not count as success
        try:
            os.remove(job.output_path)
        except FileNotFoundError:
            pass

        logger.info("Trying renderer %s for %s", renderer.name, os.path.basename(job.input_path))
        try:
            async with self._limiter():
                await renderer.render(job.input_path, job.output_path, self.timeout)
        except RendererError as e:
            return self._fail(job, renderer, e.reason)
        except Exception as e:
            return self._fail(job, renderer, f"{type(e).__name__}: {e}")

        try:
            with open(job.output_path, "rb") as f:
                data = f.read()
        except OSError as e:
            return self._fail(job, renderer, f"no readable output: {e}")
        if not data:
            return self._fail(job, renderer, "produced an empty output file")
        return data

    def _fail(self, job: ConversionJob, renderer: Renderer, reason: str) -> Optional[bytes]:
        job.failures[renderer.name] = reason
        logger.warning("Renderer %s failed: %s", renderer.name, reason)
        return None
