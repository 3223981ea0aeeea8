from fastapi import APIRouter, Depends, Request, status

from app.api.dependencies import get_use_cases

router = APIRouter()


@router.post("/payments/webhook", status_code=status.HTTP_200_OK)
async def payment_webhook(
    request: Request,
    use_cases=Depends(get_use_cases),
) -> dict:
    raw_body = await request.body()
    signature = request.headers.get("X-Payment-Signature")
    return await use_cases["payment_webhook"].execute(raw_body=raw_body, signature=signature)


@router.post("/etg/webhook", status_code=status.HTTP_200_OK)
async def etg_webhook(
    request: Request,
    use_cases=Depends(get_use_cases),
) -> dict:
    raw_body = await request.body()
    signature = request.headers.get("X-ETG-Signature")
    return await use_cases["etg_webhook"].execute(raw_body=raw_body, signature=signature)
