from fastapi import APIRouter, Depends, Request, Response
from sqlmodel import Session, select

from app.database import get_session
from app.models.access_token import AccessToken
from app.models.user import User
from app.models.video import Video
from app.schemas.access_schemas import TokenRequest
from app.services.access_token_service import consume_token, token_state, verify_token
from app.services.qr import make_qr_bytes, make_qr_data_uri
from app.utils.token import get_current_user

router = APIRouter()


@router.post("/verify")
def verify_access(payload: TokenRequest, session: Session = Depends(get_session)):
    qr, video = verify_token(session, payload.token)
    return {
        "ok": True,
        "downloads_remaining": qr.downloads_remaining,
        "expires_at": qr.expires_at,
        "video": {
            "id": video.id,
            "title": video.title,
            "file_url": video.file_url,
        },
    }


@router.post("/consume")
def consume_access(payload: TokenRequest, session: Session = Depends(get_session)):
    qr = consume_token(session, payload.token)
    return {"ok": True, "remaining": qr.downloads_remaining}


@router.get("/qr/{token}")
def qr_image(token: str, request: Request):
    if "image/png" in request.headers.get("accept", ""):
        return Response(
            content=make_qr_bytes(token),
            media_type="image/png",
            headers={"Cache-Control": "no-store"},
        )
    return {"qr_code": make_qr_data_uri(token), "token": token}


@router.get("/my-qr")
def my_tokens(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    rows = session.exec(
        select(AccessToken, Video)
        .join(Video, Video.id == AccessToken.video_id)
        .where(AccessToken.user_id == current_user.id)
        .order_by(AccessToken.created_at.desc(), AccessToken.id.desc())
    ).all()

    return {
        "items": [
            {
                "token": qr.token,
                "expires_at": qr.expires_at,
                "max_downloads": qr.max_downloads,
                "download_count": qr.download_count,
                "is_revoked": qr.is_revoked,
                "status": token_state(qr).value,
                "created_at": qr.created_at,
                "video": {"id": video.id, "title": video.title, "file_url": video.file_url},
            }
            for qr, video in rows
        ]
    }
