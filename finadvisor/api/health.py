from fastapi import APIRouter, Request

router = APIRouter()


@router.get('/health')
def health():
    return {'status': 'OK', 'message': 'Server is running'}


@router.get('/metrics/stocks')
def stock_metrics(request: Request):
    return request.app.state.stock_service.metrics()
