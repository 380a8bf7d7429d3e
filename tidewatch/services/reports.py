# tidewatch/services/reports.py
from __future__ import annotations

import logging
import sqlite3
import uuid
from typing import Optional, Protocol, Tuple

from tidewatch.core.contracts import Coordinate, HazardReport
from tidewatch.core.errors import InputError, ValidationError
from tidewatch.core.settings import settings
from tidewatch.core.storage import get_report, get_report_image, put_report, put_report_image
from tidewatch.core.time import utc_now
from tidewatch.services.geotag import GeotagValidator

logger = logging.getLogger(__name__)


class UploadTooLarge(InputError):
    pass


class ReportStore(Protocol):
    def save(self, report: HazardReport, image_bytes: bytes) -> None: ...

    def get(self, report_id: str) -> Optional[HazardReport]: ...

    def get_image(self, image_ref: str) -> Optional[Tuple[str, bytes]]: ...


class SqliteReportStore:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def save(self, report: HazardReport, image_bytes: bytes) -> None:
        doc = report.model_dump(mode="json")
        # One transaction: an image row never outlives a failed report write
        with self.conn:
            put_report_image(
                self.conn,
                image_ref=report.image_ref,
                content_type=report.content_type,
                data=image_bytes,
            )
            put_report(
                self.conn,
                report_id=report.report_id,
                submitter_id=report.submitter_id,
                submitted_at=doc["submitted_at"],
                validation_outcome=report.validation_outcome,
                report=doc,
            )

    def get(self, report_id: str) -> Optional[HazardReport]:
        raw = get_report(self.conn, report_id)
        if not raw:
            return None
        return HazardReport.model_validate(raw)

    def get_image(self, image_ref: str) -> Optional[Tuple[str, bytes]]:
        return get_report_image(self.conn, image_ref)


class Reports:
    def __init__(
        self,
        *,
        validator: GeotagValidator,
        store: ReportStore,
        allowed_mime: set[str] | None = None,
        max_bytes: int | None = None,
    ):
        self.validator = validator
        self.store = store
        self.allowed_mime = allowed_mime or settings.upload_allowed_mime_set()
        self.max_bytes = int(max_bytes or settings.upload_max_mb * 1024 * 1024)

    def check_upload(self, image_bytes: bytes, content_type: Optional[str]) -> None:
        ct = (content_type or "").split(";", 1)[0].strip().lower()
        if ct not in self.allowed_mime:
            raise InputError("Only JPEG images with EXIF GPS are allowed.")
        if not image_bytes:
            raise InputError("Please select an image file.")
        if len(image_bytes) > self.max_bytes:
            max_mb = self.max_bytes / (1024 * 1024)
            raise UploadTooLarge(f"Image too large. Max size is {max_mb:g} MB.")

    def submit(
        self,
        *,
        image_bytes: bytes,
        filename: Optional[str],
        content_type: Optional[str],
        live: Optional[Coordinate],
        submitter_id: Optional[str] = None,
    ) -> HazardReport:
        if live is None:
            raise ValidationError("Location access is required to submit a report.")
        self.check_upload(image_bytes, content_type)

        verdict = self.validator.validate_image(live, image_bytes)
        if not verdict.ok:
            logger.info(
                "[reports] rejected submitter=%s reason=%r distance_km=%s",
                submitter_id, verdict.reason, verdict.distance_km,
            )
            raise ValidationError(verdict.reason or "Image location validation failed.", verdict)

        report_id = uuid.uuid4().hex
        report = HazardReport(
            report_id=report_id,
            submitter_id=submitter_id,
            image_ref=f"img_{report_id}",
            image_name=filename,
            content_type=(content_type or "").split(";", 1)[0].strip().lower(),
            size_bytes=len(image_bytes),
            live_coordinate=live,
            exif_coordinate=verdict.exif_coordinate,
            distance_km=verdict.distance_km,
            validation_outcome="accepted",
            submitted_at=utc_now(),
        )
        self.store.save(report, image_bytes)
        logger.info("[reports] accepted report_id=%s distance_km=%.3f", report_id, verdict.distance_km or 0.0)
        return report

    def get(self, report_id: str) -> Optional[HazardReport]:
        return self.store.get(report_id)

    def get_image(self, report_id: str) -> Optional[Tuple[str, bytes]]:
        report = self.store.get(report_id)
        if not report:
            return None
        return self.store.get_image(report.image_ref)
