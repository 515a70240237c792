"""
Best-effort test suite invocation for commit records.

The runner is started with coverage instrumentation and a JSON report path.
Its exit status is ignored: failing tests still produce a report, and only a
missing or unreadable report degrades the results to zero.
"""

import json
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from config.settings import RunnerSettings
from shared.models import JestReport, SuiteResults

logger = logging.getLogger(__name__)


class CoverageRunner:
    """Runs the project's test command and reads its report."""

    def __init__(self, project_root: str, config: Optional[RunnerSettings] = None):
        self.project_root = Path(project_root)
        self.config = config or RunnerSettings()

    @property
    def manifest_path(self) -> Path:
        return self.project_root / self.config.manifest

    def should_run(self) -> bool:
        if not self.config.enabled:
            logger.debug("Test runner disabled by configuration")
            return False
        if not self.manifest_path.exists():
            logger.debug(f"No {self.config.manifest} in {self.project_root}, skipping tests")
            return False
        return True

    def build_command(self, report_path: Path) -> List[str]:
        return [*self.config.command, self.config.output_flag.format(path=report_path)]

    def run(self) -> SuiteResults:
        """Run the suite and return its results; zeros when unavailable."""
        if not self.should_run():
            return SuiteResults()

        with tempfile.TemporaryDirectory(prefix="commit-tracker-") as tmp_dir:
            report_path = Path(tmp_dir) / "test-results.json"
            command = self.build_command(report_path)
            logger.info(f"Running tests: {' '.join(command)}")
            try:
                result = subprocess.run(
                    command,
                    cwd=self.project_root,
                    capture_output=True,
                    text=True,
                    timeout=self.config.timeout,
                )
                if result.returncode != 0:
                    logger.info(f"Test runner exited with status {result.returncode}")
            except FileNotFoundError:
                logger.warning(f"Test runner not found: {command[0]}")
                return SuiteResults()
            except subprocess.TimeoutExpired:
                logger.warning(f"Test runner timed out after {self.config.timeout}s")
            except OSError as e:
                logger.warning(f"Test runner could not be started: {e}")
                return SuiteResults()

            return self.read_report(report_path)

    def read_report(self, report_path: Path) -> SuiteResults:
        """Parse a report file into results; zeros when missing or invalid."""
        if not report_path.exists():
            logger.warning(f"Test report not found at {report_path}")
            return SuiteResults()
        try:
            data = json.loads(report_path.read_text(encoding="utf-8"))
            report = JestReport.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Could not parse test report {report_path}: {e}")
            return SuiteResults()

        results = report.to_results()
        logger.info(
            f"Tests: {results.test_count} total, {results.failed_tests} failed, "
            f"coverage {results.coverage}%"
        )
        return results
