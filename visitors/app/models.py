"""Pydantic models for visitor records and capture payloads."""

import pydantic

# Field names keep the camelCase used on the wire and in the log file.


class VisitorRecord(pydantic.BaseModel):
    """One logged visit, in log-file field order."""

    ip: str
    region: str
    dateTime: str
    longLat: str

    @property
    def date_key(self) -> str:
        """Calendar date portion of dateTime, used for per-day deduplication."""
        return date_key(self.dateTime)

    def to_line(self) -> str:
        """Render the record as a log line, without the trailing newline."""
        return ','.join((self.ip, self.region, self.dateTime, self.longLat))


class CaptureRequest(pydantic.BaseModel):
    """Body of POST /capture. Every field is required but checked by the route."""

    ip: str | None = None
    region: str | None = None
    dateTime: str | None = None
    longLat: str | None = None

    def to_record(self) -> VisitorRecord | None:
        """Return the record, or None if any field is missing or empty."""
        if not (self.ip and self.region and self.dateTime and self.longLat):
            return None
        return VisitorRecord(
            ip=self.ip,
            region=self.region,
            dateTime=self.dateTime,
            longLat=self.longLat,
        )


class CaptureResponse(pydantic.BaseModel):
    """Result of POST /capture."""

    success: bool = True
    message: str | None = None


def date_key(date_time: str) -> str:
    """Return the text before the first 'T' of a timestamp string."""
    return date_time.split('T', 1)[0]
