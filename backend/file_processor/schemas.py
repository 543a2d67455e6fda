# backend/file_processor/schemas.py
from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ProcessingSummary(CamelModel):
    file_name: str
    file_size: str
    file_type: str
    processed_at: str
    # delimited files
    row_count: int | None = None
    columns: List[str] | None = None
    # workbooks
    sheet_count: int | None = None
    sheet_names: List[str] | None = None
    total_rows: int | None = None


class UploadResult(CamelModel):
    success: bool
    message: str
    data: Any = None
    processing_info: ProcessingSummary | None = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.success:
            payload["data"] = self.data
            payload["processingInfo"] = self.processing_info.model_dump(by_alias=True, exclude_none=True)
        return payload


class HealthStatus(CamelModel):
    success: bool
    message: str
    timestamp: str
    xlsx_available: bool
