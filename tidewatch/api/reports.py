from __future__ import annotations

import math
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse, Response

from tidewatch.core.contracts import Coordinate, HazardReport, ReportAccepted
from tidewatch.core.errors import InputError, ValidationError, bad_request, not_found, payload_too_large
from tidewatch.core.geo import is_valid_coordinate, to_number
from tidewatch.services.reports import Reports, UploadTooLarge

router = APIRouter(prefix="/reports")


def get_reports_service() -> Reports:
    raise RuntimeError("Reports must be provided by app dependency override")


def _live_coordinate(lat_raw: Optional[str], lng_raw: Optional[str]) -> Optional[Coordinate]:
    # Missing live location is a validation rejection, not a malformed request
    if not (lat_raw or "").strip() or not (lng_raw or "").strip():
        return None
    lat = to_number(lat_raw.strip())
    lng = to_number(lng_raw.strip())
    if not (math.isfinite(lat) and math.isfinite(lng)):
        bad_request("invalid_location", "Invalid latitude or longitude")
    if not is_valid_coordinate(lat, lng):
        bad_request(
            "location_out_of_range",
            "Latitude must be between -90 and 90, longitude between -180 and 180",
        )
    return Coordinate(lat=lat, lng=lng)


@router.post("", status_code=201, response_model=ReportAccepted)
def submit_report(
    image: UploadFile = File(...),
    lat: Optional[str] = Form(default=None),
    lng: Optional[str] = Form(default=None),
    submitter_id: Optional[str] = Form(default=None, alias="submitterId"),
    reports: Reports = Depends(get_reports_service),
):
    # Plain def: EXIF decoding and the SQLite write run in the threadpool
    live = _live_coordinate(lat, lng)
    data = image.file.read()

    try:
        report = reports.submit(
            image_bytes=data,
            filename=image.filename,
            content_type=image.content_type,
            live=live,
            submitter_id=submitter_id,
        )
    except UploadTooLarge as e:
        payload_too_large("upload_too_large", str(e))
    except InputError as e:
        bad_request("bad_upload", str(e))
    except ValidationError as e:
        return JSONResponse(status_code=422, content={"success": False, "reason": e.reason})

    return ReportAccepted(report_id=report.report_id, distance_km=report.distance_km)


@router.get("/{report_id}", response_model=HazardReport)
def get_report(
    report_id: str,
    reports: Reports = Depends(get_reports_service),
) -> HazardReport:
    report = reports.get(report_id)
    if not report:
        not_found("report_missing", f"no report found for {report_id}")
    return report


@router.get("/{report_id}/image")
def get_report_image(
    report_id: str,
    reports: Reports = Depends(get_reports_service),
) -> Response:
    found = reports.get_image(report_id)
    if not found:
        not_found("report_image_missing", f"no image stored for {report_id}")
    content_type, data = found
    return Response(content=data, media_type=content_type)
