"""HTTP routes for capturing, listing and exporting visitor records."""

import fastapi
import fastapi.responses

from .errors import ValidationError
from .models import CaptureRequest, CaptureResponse, VisitorRecord
from .store import VisitorStore

router = fastapi.APIRouter()

DUPLICATE_MESSAGE = 'Data already exists for today'
EXPORT_FILENAME = 'index.csv'


def get_store(request: fastapi.Request) -> VisitorStore:
    """Return the store owned by the running app."""
    return request.app.state.store


# Store calls block on file I/O; these handlers stay sync to run in the threadpool.


@router.post(
    '/capture', response_model=CaptureResponse, response_model_exclude_none=True
)
def capture(
    payload: CaptureRequest,
    store: VisitorStore = fastapi.Depends(get_store),
) -> CaptureResponse:
    """Log a visit unless this ip was already logged on the same date."""
    record = payload.to_record()
    if record is None:
        raise ValidationError()

    if not store.append_if_absent(record):
        return CaptureResponse(message=DUPLICATE_MESSAGE)
    return CaptureResponse()


@router.get('/fetchRecord', response_model=list[VisitorRecord])
def fetch_records(
    store: VisitorStore = fastapi.Depends(get_store),
) -> list[VisitorRecord]:
    """List every logged visit, oldest first."""
    return store.read_all()


@router.get('/download')
def download(
    store: VisitorStore = fastapi.Depends(get_store),
) -> fastapi.responses.FileResponse:
    """Send the raw log file as an index.csv attachment."""
    return fastapi.responses.FileResponse(
        store.export_path(), media_type='text/csv', filename=EXPORT_FILENAME
    )
