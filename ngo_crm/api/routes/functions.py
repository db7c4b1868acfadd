"""Document generation function endpoint"""

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from ngo_crm.api.deps import get_services
from ngo_crm.functions.generate_document import handle_generate_document
from ngo_crm.services.container import Services

router = APIRouter(prefix="/functions/v1")


@router.post("/generate-document")
def generate_document(payload: dict = Body(...), services: Services = Depends(get_services)):
    body, status = handle_generate_document(payload, delay=services.settings.document_generation_delay)
    return JSONResponse(status_code=status, content=body)
