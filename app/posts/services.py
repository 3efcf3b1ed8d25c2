import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.exceptions import NotFoundError, PermissionDeniedError
from app.db.locks import LockRegistry
from app.db.repository import Repository
from app.utils.toggle import toggle_id
from app.posts.models import Post, PostLike
from app.posts.schemas import PostCreate
from app.users.models import User
from app.utils.avatar import generate_default_avatar_url

logger = logging.getLogger(__name__)


class PostService:
    def __init__(self, db: AsyncSession, locks: LockRegistry):
        self.db = db
        self.locks = locks
        self.posts = Repository(db, Post)

    async def create_post(self, data: PostCreate) -> Post:
        if not await Repository(self.db, User).get(data.user_id):
            raise NotFoundError("User not found")

        post = Post(user_id=data.user_id, caption=data.caption or "", image_url=data.image_url)
        await self.posts.add(post)
        await self.posts.commit("création du post")

        logger.info(f"Post créé: id={post.id}, user_id={data.user_id}")
        return await self.posts.get(post.id)

    async def get_feed(self) -> List[dict]:
        """Tous les posts, du plus récent au plus ancien, avec leur auteur."""
        posts = await self.posts.list(order_by=[Post.created_at.desc(), Post.id.desc()])
        return [self._with_owner(post) for post in posts]

    async def get_user_posts(self, user_id: int) -> List[Post]:
        return await self.posts.list(
            Post.user_id == user_id,
            order_by=[Post.created_at.desc(), Post.id.desc()],
        )

    async def toggle_like(self, post_id: int, user_id: int) -> dict:
        async with self.locks.hold(("post", post_id)):
            post = await self.posts.get(post_id)
            if not post:
                raise NotFoundError("Post not found")

            likes = toggle_id(post.likes, user_id)
            liked = user_id in likes
            if liked:
                post.like_rows.append(PostLike(user_id=user_id))
            else:
                row = next(r for r in post.like_rows if r.user_id == user_id)
                post.like_rows.remove(row)
            await self.posts.commit("like du post")

        return {"success": True, "post": await self.posts.get(post_id), "liked": liked}

    async def delete_post(self, post_id: int, user_id: int) -> None:
        """Seul l'auteur du post peut le supprimer."""
        async with self.locks.hold(("post", post_id)):
            post = await self.posts.get(post_id)
            if not post:
                raise NotFoundError("Post not found")
            if post.user_id != user_id:
                raise PermissionDeniedError("Unauthorized")

            await self.posts.delete(post)
            await self.posts.commit("suppression du post")

        logger.info(f"Post supprimé: id={post_id}")

    @staticmethod
    def _with_owner(post: Post) -> dict:
        owner = post.owner
        user = None
        if owner is not None:
            user = {
                "id": owner.id,
                "name": owner.name,
                "profile_picture": owner.profile_picture or generate_default_avatar_url(owner.name),
            }
        return {
            "id": post.id,
            "user_id": post.user_id,
            "caption": post.caption,
            "image_url": post.image_url,
            "likes": post.likes,
            "created_at": post.created_at,
            "user": user,
        }
