import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import password
from app.db.exceptions import ConflictError
from app.db.repository import Repository
from app.friends.models import Friendship
from app.groups.models import GroupMember, TravelGroup
from app.posts.models import Post, PostLike
from app.users.models import User
from app.users.schemas import UserCreate

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("bio", "hometown", "age", "profile_picture")


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = Repository(db, User)

    async def create_user(self, data: UserCreate) -> User:
        """Créer un utilisateur ; le nom est unique sans tenir compte de la casse."""
        name_key = User.normalize_name(data.name)
        if await self.get_user_by_name(data.name):
            raise ConflictError("User with this name already exists")

        user = User(
            name=data.name,
            name_key=name_key,
            address=data.address,
            hashed_password=password.hash_password(data.password),
            bio="",
            hometown="",
        )
        try:
            await self.users.add(user)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("User with this name already exists")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Erreur création utilisateur: {e}")
            raise

        await self.db.refresh(user)
        logger.info(f"Utilisateur créé: id={user.id}, name={user.name}")
        return user

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.users.get(user_id)

    async def get_user_by_name(self, name: str) -> Optional[User]:
        return await self.users.first(User.name_key == User.normalize_name(name))

    async def list_users(self) -> List[User]:
        return await self.users.list(order_by=[User.id])

    async def search_users(self, query: str) -> List[User]:
        """Recherche par nom ou adresse (sous-chaîne, insensible à la casse)"""
        pattern = f"%{query.lower()}%"
        return await self.users.list(
            or_(func.lower(User.name).like(pattern), func.lower(User.address).like(pattern)),
            order_by=[User.id],
        )

    async def _update(self, user_id: int, update_data: Dict[str, Any]) -> Optional[User]:
        user = await self.users.get(user_id)
        if not user:
            return None

        for field, value in update_data.items():
            setattr(user, field, value)

        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Erreur mise à jour utilisateur {user_id}: {e}")
            raise

        await self.db.refresh(user)
        return user

    async def update_address(self, user_id: int, address: str) -> Optional[User]:
        return await self._update(user_id, {"address": address})

    async def update_password(self, user_id: int, new_password: str) -> Optional[User]:
        return await self._update(user_id, {"hashed_password": password.hash_password(new_password)})

    async def update_profile(self, user_id: int, profile_data: Dict[str, Any]) -> Optional[User]:
        update_data = {k: v for k, v in profile_data.items() if k in PROFILE_FIELDS}
        for text_field in ("bio", "hometown"):
            if text_field in update_data and update_data[text_field] is None:
                update_data[text_field] = ""
        return await self._update(user_id, update_data)

    async def authenticate(self, name: str, plain_password: str) -> Optional[User]:
        user = await self.get_user_by_name(name)
        if not user or not password.verify_password(plain_password, user.hashed_password):
            return None
        return user

    async def delete_user(self, user_id: int) -> bool:
        """
        Supprime un utilisateur ainsi que :
        - ses amitiés (dans les deux sens)
        - ses adhésions à tous les groupes
        - les groupes qu'il a créés
        - ses posts
        Les votes déjà exprimés restent en place.
        """
        user = await self.users.get(user_id)
        if not user:
            return False

        try:
            groups = Repository(self.db, TravelGroup)
            for group in await groups.list(TravelGroup.creator_id == user_id):
                await groups.delete(group)

            await Repository(self.db, GroupMember).delete_where(GroupMember.user_id == user_id)
            await Repository(self.db, Friendship).delete_where(
                or_(Friendship.requester_id == user_id, Friendship.recipient_id == user_id)
            )

            owned_posts = select(Post.id).where(Post.user_id == user_id)
            await Repository(self.db, PostLike).delete_where(PostLike.post_id.in_(owned_posts))
            await Repository(self.db, Post).delete_where(Post.user_id == user_id)
            await self.users.delete(user)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Erreur suppression utilisateur {user_id}: {e}")
            raise

        logger.info(f"Utilisateur supprimé: id={user_id}")
        return True

    async def get_stats(self) -> Dict[str, int]:
        return {
            "total_users": await self.users.count(),
            "total_groups": await Repository(self.db, TravelGroup).count(),
            "total_friendships": await Repository(self.db, Friendship).count(),
            "total_posts": await Repository(self.db, Post).count(),
        }
