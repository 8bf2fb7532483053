# rentals/api/routers/quotations.py
from fastapi import APIRouter, Depends

from rentals.api.deps import get_quotation_service
from rentals.domain.schemas import QuotationIn, QuotationEnvelope
from rentals.services.quotation_service import QuotationService

router = APIRouter(prefix="/quotations", tags=["quotations"])


@router.post("", response_model=QuotationEnvelope)
def create_quotation(payload: QuotationIn, svc: QuotationService = Depends(get_quotation_service)):
    """Price a cart: line totals, tax, delivery fee and grand total. Nothing is stored."""
    return {"quotation": svc.quote(payload.items)}
