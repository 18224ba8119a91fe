"""Step that runs an inline shell command."""

import asyncio
import os
from typing import Optional

from pages_pipeline.errors import StepExecutionError
from pages_pipeline.services.pipeline import JobContext, PipelineStep

OUTPUT_CHUNK_SIZE = 64 * 1024


class RunCommandStep(PipelineStep):
    """Run a shell command in the job workspace; a non-zero exit fails the step."""

    def __init__(
        self,
        command: str,
        shell: str = "bash",
        name: Optional[str] = None,
        step_id: Optional[str] = None,
        working_directory: Optional[str] = None,
        timeout_minutes: Optional[float] = None,
    ):
        """Initialize the step.

        Args:
            command: Shell command string
            shell: Shell executable; commands run with ``-e -c``
            name: Step display name
            step_id: Optional step id
            working_directory: Directory relative to the workspace to run in
            timeout_minutes: Optional limit on step duration
        """
        super().__init__(name or command.splitlines()[0], step_id, timeout_minutes)
        self.command = command
        self.shell = shell
        self.working_directory = working_directory

    def _environment(self, context: JobContext) -> dict[str, str]:
        env = dict(os.environ)
        env.update({
            "CI": "true",
            "PIPELINE_RUN_ID": context.run_id,
            "PIPELINE_JOB": context.job_name,
            "PIPELINE_WORKSPACE": str(context.workspace),
        })
        return env

    def _log_line(self, context: JobContext, line: bytes) -> None:
        self.logger.info(
            "output",
            run_id=context.run_id,
            job=context.job_name,
            line=line.decode("utf-8", errors="replace").rstrip(),
        )

    async def _stream_output(
        self,
        stream: Optional[asyncio.StreamReader],
        context: JobContext,
    ) -> None:
        """Log command output line by line.

        Reads fixed-size chunks so a single line of any length cannot
        overflow the stream buffer; overlong lines are logged in pieces.
        """
        if stream is None:
            return

        pending = b""
        while True:
            chunk = await stream.read(OUTPUT_CHUNK_SIZE)
            if not chunk:
                break
            pending += chunk
            *lines, pending = pending.split(b"\n")
            for line in lines:
                self._log_line(context, line)
            while len(pending) >= OUTPUT_CHUNK_SIZE:
                self._log_line(context, pending[:OUTPUT_CHUNK_SIZE])
                pending = pending[OUTPUT_CHUNK_SIZE:]
        if pending:
            self._log_line(context, pending)

    async def execute(self, context: JobContext) -> bool:
        """Run the command and stream its output into the log.

        Raises:
            StepExecutionError: If the command exits non-zero or cannot start
        """
        cwd = context.workspace
        if self.working_directory:
            cwd = context.resolve_path(self.working_directory)

        try:
            process = await asyncio.create_subprocess_exec(
                self.shell,
                "-e",
                "-c",
                self.command,
                cwd=cwd,
                env=self._environment(context),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise StepExecutionError(
                f"Could not start shell {self.shell!r}: {e}",
                exit_status=127,
                job_name=context.job_name,
                step_name=self.name,
            ) from e

        try:
            await self._stream_output(process.stdout, context)
            exit_status = await process.wait()
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

        if exit_status != 0:
            raise StepExecutionError(
                f"Command exited with status {exit_status}",
                exit_status=exit_status,
                job_name=context.job_name,
                step_name=self.name,
            )
        return True
