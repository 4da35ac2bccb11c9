"""
fetcher.py — Pull marks and grading inputs from the school's marks API.

All calls for a report run are issued concurrently. Results are settled
individually: a failed call (network error, non-2xx, bad JSON) is logged and
becomes an empty result for that student and period only. There is no
retry.

Every response body goes through core/ingest.py, so callers only ever see
canonical shapes.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

import httpx

from core.cache import LookupCache
from core.ingest import (
    parse_ca_subjects,
    parse_comment_ranges,
    parse_grading_rows,
    parse_marks,
    parse_subjects,
    parse_teacher_initials,
    parse_term_dates,
)
from core.models import BOT, CA, EOT, MID, PERIODS, CommentRange, GradingRow, StudentMarks, Subject

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20.0

SUBJECTS_CACHE_KEY = "subjects"


class MarksApiClient:
    """
    Thin async client over the marks API.

    `client` may be supplied (tests pass one built on httpx.MockTransport);
    otherwise one is created and owned by this object.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        cache: Optional[LookupCache] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout)
        self.headers = headers
        self.cache = cache if cache is not None else LookupCache()

    async def __aenter__(self) -> "MarksApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    # ── Transport ───────────────────────────────────────────────────

    async def _get_json(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """GET path and decode JSON; None on any failure."""
        clean = {k: v for k, v in (params or {}).items() if v is not None and v != ""}
        try:
            res = await self.client.get(path, params=clean, headers=self.headers)
            res.raise_for_status()
            return res.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("GET %s failed with status %s", path, exc.response.status_code)
        except httpx.HTTPError as exc:
            logger.warning("GET %s failed: %s", path, exc)
        except ValueError:
            logger.warning("GET %s returned a body that is not JSON", path)
        return None

    # ── Reference data ──────────────────────────────────────────────

    async def fetch_subjects(self) -> List[Subject]:
        async def _load() -> List[Subject]:
            payload = await self._get_json("/api/v1/subjects")
            if payload is None:
                raise LookupError("subjects unavailable")
            return parse_subjects(payload)

        try:
            return await self.cache.get_or_fetch(SUBJECTS_CACHE_KEY, _load)
        except LookupError:
            return []

    async def fetch_grading_rows(self, class_id: str, academic_year_id: str, term_id: str) -> List[GradingRow]:
        if not (class_id and academic_year_id and term_id):
            return []
        payload = await self._get_json(
            "/api/v1/grading-scales",
            {"classId": class_id, "academicYearId": academic_year_id, "termId": term_id},
        )
        return parse_grading_rows(payload)

    async def fetch_comment_ranges(
        self, role: str, class_id: str, term_id: str, academic_year_id: str,
    ) -> List[CommentRange]:
        """role is "class" or "head"."""
        if not (class_id and term_id and academic_year_id):
            return []
        payload = await self._get_json(
            f"/api/v1/{role}teacherscomments/comments",
            {"academicYearId": academic_year_id, "termId": term_id, "classId": class_id},
        )
        return parse_comment_ranges(payload)

    async def fetch_teacher_initials(
        self, class_id: str, term_id: Optional[str] = None, academic_year_id: Optional[str] = None,
    ) -> Dict[str, str]:
        if not class_id:
            return {}
        payload = await self._get_json(
            "/api/v1/teacher-subject-assignments/assignments",
            {"classId": class_id, "termId": term_id, "academicYearId": academic_year_id},
        )
        return parse_teacher_initials(payload)

    async def fetch_term_dates(self, class_id: str) -> Dict[str, str]:
        if not class_id:
            return parse_term_dates(None, None)
        payload = await self._get_json("/api/v1/term/active")
        return parse_term_dates(payload, class_id)

    # ── Marks ───────────────────────────────────────────────────────

    async def fetch_ca_marks(self, student_id: str, term_id: str, academic_year_id: str, exam_set_id: str):
        payload = await self._get_json("/api/v1/marks/student-ca", {
            "studentId": student_id,
            "termId": term_id,
            "academicYearId": academic_year_id,
            "examSetId": exam_set_id,
        })
        return parse_ca_subjects(payload)

    async def fetch_period_marks(
        self,
        student_id: str,
        period: str,
        term_id: str,
        academic_year_id: str,
        exam_set_id: str,
        class_id: Optional[str] = None,
        include_historical: bool = False,
    ):
        payload = await self._get_json("/api/v1/marks/student", {
            "studentId": student_id,
            "termId": term_id,
            "academicYearId": academic_year_id,
            "examSetId": exam_set_id,
            "assessmentType": period,
            "classId": class_id,
            "includeHistorical": "true" if include_historical else None,
        })
        return parse_marks(payload)

    async def fetch_student_marks(
        self,
        student_ids: Iterable[str],
        exam_sets: Mapping[str, Optional[str]],
        term_id: str,
        academic_year_id: str,
        class_id: Optional[str] = None,
        include_historical: bool = False,
    ) -> Dict[str, StudentMarks]:
        """
        Fan out one call per (student, period) with an exam set, then
        gather with all-settled semantics.

        exam_sets maps period tags (CA, BOT, MID, EOT) to exam set ids;
        periods without an exam set are not fetched and stay empty.
        """
        student_ids = list(student_ids)
        calls = []
        keys = []
        for student_id in student_ids:
            for period in PERIODS:
                exam_set_id = exam_sets.get(period)
                if not exam_set_id:
                    continue
                if period == CA:
                    coro = self.fetch_ca_marks(student_id, term_id, academic_year_id, exam_set_id)
                else:
                    coro = self.fetch_period_marks(
                        student_id, period, term_id, academic_year_id, exam_set_id,
                        class_id=class_id, include_historical=include_historical,
                    )
                calls.append(coro)
                keys.append((student_id, period))

        logger.info("Fetching %d mark sets for %d students", len(calls), len(student_ids))
        results = await asyncio.gather(*calls, return_exceptions=True)

        by_student: Dict[str, Dict[str, list]] = {
            sid: {period: [] for period in PERIODS} for sid in student_ids
        }
        for (student_id, period), result in zip(keys, results):
            if isinstance(result, BaseException):
                logger.warning("%s marks for student %s failed: %s", period, student_id, result)
                continue
            by_student[student_id][period] = result

        return {
            sid: StudentMarks(
                student_id=sid,
                ca=periods[CA],
                bot=periods[BOT],
                mid=periods[MID],
                eot=periods[EOT],
            )
            for sid, periods in by_student.items()
        }

    async def fetch_report_inputs(
        self,
        class_id: str,
        term_id: str,
        academic_year_id: str,
        student_ids: Iterable[str],
        exam_sets: Mapping[str, Optional[str]],
        include_historical: bool = False,
    ) -> Dict[str, Any]:
        """Everything a class report run needs, fetched concurrently."""
        (
            subjects,
            grading_rows,
            class_ranges,
            head_ranges,
            initials,
            dates,
            marks,
        ) = await asyncio.gather(
            self.fetch_subjects(),
            self.fetch_grading_rows(class_id, academic_year_id, term_id),
            self.fetch_comment_ranges("class", class_id, term_id, academic_year_id),
            self.fetch_comment_ranges("head", class_id, term_id, academic_year_id),
            self.fetch_teacher_initials(class_id, term_id, academic_year_id),
            self.fetch_term_dates(class_id),
            self.fetch_student_marks(
                student_ids, exam_sets, term_id, academic_year_id,
                class_id=class_id, include_historical=include_historical,
            ),
        )
        return {
            "subjects": subjects,
            "grading_rows": grading_rows,
            "class_teacher_ranges": class_ranges,
            "head_teacher_ranges": head_ranges,
            "initials_map": initials,
            "term_dates": dates,
            "marks": marks,
        }
