import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from sqlmodel import Session, select

from app.config import settings
from app.database import get_session
from app.dependencies.admin import require_admin
from app.errors import NotFound, ValidationError
from app.models.access_token import AccessToken
from app.models.transaction import Transaction, TransactionStatus
from app.models.user import User
from app.models.video import Video
from app.schemas.video_schemas import (
    FeedResponse,
    OwnedToken,
    PurchasedVideo,
    VideoCreate,
    VideoUpdate,
)
from app.services.access_token_service import mint_token
from app.services.media_storage import delete_media, save_upload
from app.utils.pagination import after_cursor, encode_cursor, paginate
from app.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# ---------- PUBLIC FEED ----------
@router.get("/feed", response_model=FeedResponse)
def feed(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    q: str | None = None,
    cursor: str | None = Query(None, description="next_cursor from the previous page"),
    session: Session = Depends(get_session),
):
    query = select(Video).where(Video.is_active == True)  # noqa: E712

    term = (q or "").strip()
    if term:
        like = like_pattern(term)
        query = query.where(
            Video.title.ilike(like, escape="\\") |
            Video.description.ilike(like, escape="\\") |
            Video.folder.ilike(like, escape="\\")
        )

    if cursor:
        query = after_cursor(query, Video.created_at, Video.id, cursor)
        page = 1

    query = query.order_by(Video.created_at.desc(), Video.id.desc())

    data = paginate(session=session, query=query, page=page, limit=limit)
    items = data["items"]

    next_cursor = None
    if data["has_more"] and items:
        next_cursor = encode_cursor(items[-1].created_at, items[-1].id)

    return FeedResponse(
        items=[item.model_dump() for item in items],
        page=data["page"],
        limit=data["limit"],
        total=data["total"],
        has_more=data["has_more"],
        next_cursor=next_cursor,
    )


# ---------- PURCHASED ----------
@router.get("/purchased")
def purchased_videos(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    rows = session.exec(
        select(Transaction, Video)
        .join(Video, Video.id == Transaction.video_id)
        .where(Transaction.user_id == current_user.id)
        .where(Transaction.status == TransactionStatus.paid)
        .where(Video.is_active == True)  # noqa: E712
        .order_by(Transaction.created_at, Transaction.id)
    ).all()

    videos: dict[int, Video] = {}
    purchase_dates: dict[int, datetime] = {}
    for txn, video in rows:
        if video.id not in videos:
            videos[video.id] = video
            purchase_dates[video.id] = txn.created_at

    if not videos:
        return {"items": []}

    tokens = session.exec(
        select(AccessToken)
        .where(AccessToken.user_id == current_user.id)
        .where(AccessToken.video_id.in_(list(videos)))
        .where(AccessToken.is_revoked == False)  # noqa: E712
        .where(AccessToken.expires_at > datetime.utcnow())
        .order_by(AccessToken.created_at.desc())
    ).all()

    items = []
    for video_id, video in videos.items():
        items.append(
            PurchasedVideo(
                id=video.id,
                title=video.title,
                description=video.description,
                file_url=video.file_url,
                thumbnail_url=video.thumbnail_url,
                price=video.price,
                created_at=video.created_at,
                purchase_date=purchase_dates[video_id],
                qr_tokens=[
                    OwnedToken(
                        token=t.token,
                        expires_at=t.expires_at,
                        max_downloads=t.max_downloads,
                        download_count=t.download_count,
                    )
                    for t in tokens
                    if t.video_id == video_id
                ],
            )
        )

    return {"items": items}


# ---------- ADMIN ----------
@router.post("", status_code=status.HTTP_201_CREATED)
def create_video(
    payload: VideoCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    video = Video(**payload.model_dump())
    session.add(video)
    session.commit()
    session.refresh(video)
    return video


@router.post("/upload", status_code=status.HTTP_201_CREATED)
def upload_video(
    title: str = Form(..., min_length=1),
    description: str = Form(None),
    price: int = Form(..., ge=1),
    folder: str = Form("General"),
    preview_file: UploadFile = File(...),
    full_file: UploadFile = File(...),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    if not (preview_file.content_type or "").startswith("image/"):
        raise ValidationError("Preview must be an image file", reason="invalid_preview_file")
    if not (full_file.content_type or "").startswith("video/"):
        raise ValidationError("Full video must be a video file", reason="invalid_video_file")

    preview_url = save_upload(preview_file, title, "preview")
    try:
        file_url = save_upload(full_file, title, "full")
    except Exception:
        delete_media(preview_url)
        raise

    video = Video(
        title=title,
        description=description,
        price=price,
        folder=folder or "General",
        preview_url=preview_url,
        file_url=file_url,
        thumbnail_url=preview_url,
    )
    try:
        session.add(video)
        session.flush()

        # permanent preview link for the uploading admin
        qr = mint_token(
            session,
            user_id=admin.id,
            video_id=video.id,
            ttl=timedelta(days=settings.PREVIEW_TOKEN_TTL_DAYS),
            max_downloads=settings.PREVIEW_TOKEN_MAX_DOWNLOADS,
            commit=False,
        )
        video.qr_token = qr.token
        session.add(video)
        session.commit()
    except Exception:
        session.rollback()
        delete_media(preview_url)
        delete_media(file_url)
        logger.error(f"Upload of {title!r} rolled back, stored files removed")
        raise
    session.refresh(video)

    logger.info(f"Video {video.id} uploaded by admin {admin.id}")
    return video


@router.patch("/{video_id}")
def update_video(
    video_id: int,
    payload: VideoUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    video = session.get(Video, video_id)
    if not video:
        raise NotFound("Video not found")

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field != "description":
            continue
        setattr(video, field, value)

    video.updated_at = datetime.utcnow()
    session.add(video)
    session.commit()
    session.refresh(video)
    return video


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_video(
    video_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    video = session.get(Video, video_id)
    if not video:
        raise NotFound("Video not found")

    # soft delete
    video.is_active = False
    video.updated_at = datetime.utcnow()
    session.add(video)
    session.commit()

    logger.info(f"Video {video_id} deactivated by admin {admin.id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
