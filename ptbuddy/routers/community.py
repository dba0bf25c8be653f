import math

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ptbuddy import schemas
from ptbuddy.database import get_db
from ptbuddy.models import (
    CommunityComment,
    CommunityCommentLike,
    CommunityPost,
    CommunityPostLike,
    utcnow,
)
from ptbuddy.sessions import SessionUser, get_current_user

router = APIRouter(prefix="/community", tags=["Community"])


def _get_live_post(db: Session, post_id: int) -> CommunityPost:
    post = (
        db.query(CommunityPost)
        .filter(CommunityPost.id == post_id, CommunityPost.deleted_at.is_(None))
        .first()
    )
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


def _get_live_comment(db: Session, comment_id: int) -> CommunityComment:
    comment = (
        db.query(CommunityComment)
        .filter(CommunityComment.id == comment_id, CommunityComment.deleted_at.is_(None))
        .first()
    )
    if comment is None:
        raise HTTPException(status_code=404, detail="Comment not found")
    return comment


def _is_author(user: SessionUser, author_id: int, author_role: str) -> bool:
    return user.id == author_id and user.role == author_role


def _live_comments(post: CommunityPost) -> list[CommunityComment]:
    return [comment for comment in post.comments if comment.deleted_at is None]


def _count_by(db: Session, column, ids: list[int], *criteria) -> dict[int, int]:
    """Row counts grouped by ``column`` for the given ids."""
    if not ids:
        return {}
    return dict(
        db.query(column, func.count())
        .filter(column.in_(ids), *criteria)
        .group_by(column)
        .all()
    )


def _post_out(post: CommunityPost, comment_count: int, like_count: int) -> schemas.PostOut:
    return schemas.PostOut(
        **schemas.PostOut.model_validate(post).model_dump(exclude={"comment_count", "like_count"}),
        comment_count=comment_count,
        like_count=like_count,
    )


def _like_query(db: Session, like_model, target_column, target_id: int, user: SessionUser):
    return db.query(like_model).filter(
        target_column == target_id,
        like_model.user_id == user.id,
        like_model.user_role == user.role,
    )


def _like_status(db: Session, like_model, target_column, target_id: int, user: SessionUser, message=None):
    like_count = db.query(func.count(like_model.id)).filter(target_column == target_id).scalar()
    return {
        "message": message,
        "like_count": like_count,
        "is_liked": _like_query(db, like_model, target_column, target_id, user).first() is not None,
    }


def _add_like(db: Session, like, like_model, target_column, target_id: int, user: SessionUser) -> None:
    if _like_query(db, like_model, target_column, target_id, user).first() is not None:
        raise HTTPException(status_code=400, detail="Already liked")
    db.add(like)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Already liked")


def _remove_like(db: Session, like_model, target_column, target_id: int, user: SessionUser) -> None:
    removed = _like_query(db, like_model, target_column, target_id, user).delete(synchronize_session=False)
    if removed == 0:
        raise HTTPException(status_code=400, detail="Not liked yet")
    db.commit()


@router.get("/posts", response_model=schemas.PostListResponse)
def list_posts(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    live = db.query(CommunityPost).filter(CommunityPost.deleted_at.is_(None))
    total = live.count()
    posts = (
        live.order_by(CommunityPost.is_pinned.desc(), CommunityPost.created_at.desc(), CommunityPost.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    post_ids = [post.id for post in posts]
    comment_counts = _count_by(
        db,
        CommunityComment.post_id,
        post_ids,
        CommunityComment.deleted_at.is_(None),
    )
    like_counts = _count_by(db, CommunityPostLike.post_id, post_ids)

    return {
        "posts": [
            _post_out(post, comment_counts.get(post.id, 0), like_counts.get(post.id, 0))
            for post in posts
        ],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    }


@router.post("/posts", response_model=schemas.PostOut, status_code=201)
def create_post(
    payload: schemas.PostCreate,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if (payload.is_notice or payload.is_pinned) and not user.is_admin:
        raise HTTPException(status_code=403, detail="Only administrators can post notices")

    post = CommunityPost(
        author_id=user.id,
        author_role=user.role,
        author_name=user.name,
        title=payload.title,
        content=payload.content,
        is_notice=bool(payload.is_notice),
        is_pinned=bool(payload.is_pinned),
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    return _post_out(post, 0, 0)


@router.get("/posts/{post_id}", response_model=schemas.PostDetail)
def get_post(
    post_id: int,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    post = _get_live_post(db, post_id)
    db.execute(
        update(CommunityPost)
        .where(CommunityPost.id == post.id)
        .values(view_count=CommunityPost.view_count + 1)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(post)

    comments = _live_comments(post)
    comment_likes = _count_by(db, CommunityCommentLike.comment_id, [comment.id for comment in comments])
    likes = _like_status(db, CommunityPostLike, CommunityPostLike.post_id, post.id, user)
    return schemas.PostDetail(
        **_post_out(post, len(comments), likes["like_count"]).model_dump(),
        is_liked=likes["is_liked"],
        comments=[
            schemas.CommentOut(
                **schemas.CommentOut.model_validate(comment).model_dump(exclude={"like_count"}),
                like_count=comment_likes.get(comment.id, 0),
            )
            for comment in comments
        ],
    )


@router.patch("/posts/{post_id}", response_model=schemas.PostOut)
def update_post(
    post_id: int,
    payload: schemas.PostUpdate,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    post = _get_live_post(db, post_id)
    if not _is_author(user, post.author_id, post.author_role) and not user.is_admin:
        raise HTTPException(status_code=403, detail="You cannot edit this post")

    changes = payload.model_dump(exclude_unset=True)
    if ("is_notice" in changes or "is_pinned" in changes) and not user.is_admin:
        raise HTTPException(status_code=403, detail="Only administrators can change notice settings")

    for field, value in changes.items():
        if value is not None:
            setattr(post, field, value)
    db.commit()
    db.refresh(post)
    like_count = _count_by(db, CommunityPostLike.post_id, [post.id]).get(post.id, 0)
    return _post_out(post, len(_live_comments(post)), like_count)


@router.delete("/posts/{post_id}", response_model=schemas.AuthMessage)
def delete_post(
    post_id: int,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    post = _get_live_post(db, post_id)
    if not _is_author(user, post.author_id, post.author_role) and not user.is_admin:
        raise HTTPException(status_code=403, detail="You cannot delete this post")

    post.deleted_at = utcnow()
    db.commit()
    return {"message": "Post deleted"}


@router.get("/posts/{post_id}/likes", response_model=schemas.LikeStatus)
def post_likes(
    post_id: int,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    post = _get_live_post(db, post_id)
    return _like_status(db, CommunityPostLike, CommunityPostLike.post_id, post.id, user)


@router.post("/posts/{post_id}/likes", response_model=schemas.LikeStatus)
def like_post(
    post_id: int,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    post = _get_live_post(db, post_id)
    _add_like(
        db,
        CommunityPostLike(post_id=post.id, user_id=user.id, user_role=user.role),
        CommunityPostLike,
        CommunityPostLike.post_id,
        post.id,
        user,
    )
    return _like_status(db, CommunityPostLike, CommunityPostLike.post_id, post.id, user, "Post liked")


@router.delete("/posts/{post_id}/likes", response_model=schemas.LikeStatus)
def unlike_post(
    post_id: int,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    post = _get_live_post(db, post_id)
    _remove_like(db, CommunityPostLike, CommunityPostLike.post_id, post.id, user)
    return _like_status(db, CommunityPostLike, CommunityPostLike.post_id, post.id, user, "Like removed")


@router.post("/posts/{post_id}/comments", response_model=schemas.CommentOut, status_code=201)
def create_comment(
    post_id: int,
    payload: schemas.CommentCreate,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    post = _get_live_post(db, post_id)
    comment = CommunityComment(
        post_id=post.id,
        author_id=user.id,
        author_role=user.role,
        author_name=user.name,
        content=payload.content,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


@router.delete("/comments/{comment_id}", response_model=schemas.AuthMessage)
def delete_comment(
    comment_id: int,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = _get_live_comment(db, comment_id)
    if not _is_author(user, comment.author_id, comment.author_role) and not user.is_admin:
        raise HTTPException(status_code=403, detail="You cannot delete this comment")

    comment.deleted_at = utcnow()
    db.commit()
    return {"message": "Comment deleted"}


@router.get("/comments/{comment_id}/likes", response_model=schemas.LikeStatus)
def comment_likes(
    comment_id: int,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = _get_live_comment(db, comment_id)
    return _like_status(db, CommunityCommentLike, CommunityCommentLike.comment_id, comment.id, user)


@router.post("/comments/{comment_id}/likes", response_model=schemas.LikeStatus)
def like_comment(
    comment_id: int,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = _get_live_comment(db, comment_id)
    _add_like(
        db,
        CommunityCommentLike(comment_id=comment.id, user_id=user.id, user_role=user.role),
        CommunityCommentLike,
        CommunityCommentLike.comment_id,
        comment.id,
        user,
    )
    return _like_status(
        db,
        CommunityCommentLike,
        CommunityCommentLike.comment_id,
        comment.id,
        user,
        "Comment liked",
    )


@router.delete("/comments/{comment_id}/likes", response_model=schemas.LikeStatus)
def unlike_comment(
    comment_id: int,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = _get_live_comment(db, comment_id)
    _remove_like(db, CommunityCommentLike, CommunityCommentLike.comment_id, comment.id, user)
    return _like_status(
        db,
        CommunityCommentLike,
        CommunityCommentLike.comment_id,
        comment.id,
        user,
        "Like removed",
    )
