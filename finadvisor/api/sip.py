from fastapi import APIRouter

from finadvisor.errors import ApiError
from finadvisor.schemas.sip import SipRequest
from finadvisor.services.sip import SipInputError, calculate_sip

router = APIRouter()


@router.post('/calculate')
def calculate(req: SipRequest):
    try:
        result = calculate_sip(req.monthlyInvestment, req.rate, req.years)
    except SipInputError as exc:
        raise ApiError(400, str(exc)) from exc
    return {'success': True, 'data': result.model_dump()}
