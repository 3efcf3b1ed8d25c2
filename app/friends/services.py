import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.exceptions import ConflictError, InvalidOperationError, NotFoundError
from app.db.locks import LockRegistry
from app.db.repository import Repository
from app.friends.models import Friendship, FriendshipStatus
from app.users.models import User

logger = logging.getLogger(__name__)


class FriendshipService:
    def __init__(self, db: AsyncSession, locks: LockRegistry):
        self.db = db
        self.locks = locks
        self.friendships = Repository(db, Friendship)
        self.users = Repository(db, User)

    async def _find_between(self, user_a: int, user_b: int):
        return await self.friendships.first(
            Friendship.pair_key == Friendship.make_pair_key(user_a, user_b)
        )

    async def send_request(self, requester_id: int, friend_name: str) -> Friendship:
        """Envoyer une demande d'amitié à un utilisateur désigné par son nom."""
        requester = await self.users.get(requester_id)
        if not requester:
            raise NotFoundError("User not found")

        friend = await self.users.first(User.name_key == User.normalize_name(friend_name))
        if not friend:
            raise NotFoundError("User not found")

        if friend.id == requester_id:
            raise InvalidOperationError("Cannot add yourself as a friend")

        pair_key = Friendship.make_pair_key(requester_id, friend.id)
        async with self.locks.hold(("friendship", pair_key)):
            # Une relation existe déjà dans un sens ou dans l'autre, quel que soit son statut
            if await self._find_between(requester_id, friend.id):
                raise ConflictError("Friend request already exists")

            friendship = Friendship(
                requester_id=requester_id,
                recipient_id=friend.id,
                pair_key=pair_key,
                status=FriendshipStatus.pending.value,
            )
            try:
                await self.friendships.add(friendship)
                await self.friendships.commit("envoi de la demande d'amitié")
            except IntegrityError:
                await self.db.rollback()
                raise ConflictError("Friend request already exists")

        logger.info(f"Demande d'amitié envoyée: {requester_id} -> {friend.id}")
        return await self.friendships.get(friendship.id)

    async def accept_request(self, friendship_id: int) -> Friendship:
        friendship = await self.friendships.get(friendship_id)
        if not friendship:
            raise NotFoundError("Friend request not found")

        async with self.locks.hold(("friendship", friendship.pair_key)):
            friendship = await self.friendships.get(friendship_id)
            if not friendship:
                raise NotFoundError("Friend request not found")
            if friendship.status != FriendshipStatus.pending.value:
                raise InvalidOperationError("Friend request is not pending")

            friendship.status = FriendshipStatus.accepted.value
            friendship.updated_at = datetime.now(timezone.utc)
            await self.friendships.commit("acceptation de la demande d'amitié")

        logger.info(f"Demande d'amitié acceptée: id={friendship_id}")
        return await self.friendships.get(friendship_id)

    async def reject_request(self, friendship_id: int) -> None:
        """Refuser supprime la relation, aucun état 'refusé' n'est conservé."""
        friendship = await self.friendships.get(friendship_id)
        if not friendship:
            raise NotFoundError("Friend request not found")

        async with self.locks.hold(("friendship", friendship.pair_key)):
            await self.friendships.delete(friendship)
            await self.friendships.commit("refus de la demande d'amitié")

        logger.info(f"Demande d'amitié refusée: id={friendship_id}")

    async def remove_friend(self, user_id: int, friend_id: int) -> None:
        friendship = await self._find_between(user_id, friend_id)
        if not friendship:
            raise NotFoundError("Friendship not found")

        async with self.locks.hold(("friendship", friendship.pair_key)):
            await self.friendships.delete(friendship)
            await self.friendships.commit("suppression de l'amitié")

        logger.info(f"Amitié supprimée: {user_id} <-> {friend_id}")

    async def get_friends(self, user_id: int) -> List[User]:
        accepted = await self.friendships.list(
            Friendship.status == FriendshipStatus.accepted.value,
            or_(Friendship.requester_id == user_id, Friendship.recipient_id == user_id),
        )
        friend_ids = {f.other_user_id(user_id) for f in accepted}
        if not friend_ids:
            return []
        return await self.users.list(User.id.in_(friend_ids), order_by=[User.id])

    async def get_sent_requests(self, user_id: int) -> List[dict]:
        pending = await self.friendships.list(
            Friendship.requester_id == user_id,
            Friendship.status == FriendshipStatus.pending.value,
            order_by=[Friendship.id],
        )
        return [self._with_friend(f, f.recipient) for f in pending]

    async def get_received_requests(self, user_id: int) -> List[dict]:
        pending = await self.friendships.list(
            Friendship.recipient_id == user_id,
            Friendship.status == FriendshipStatus.pending.value,
            order_by=[Friendship.id],
        )
        return [self._with_friend(f, f.requester) for f in pending]

    @staticmethod
    def _with_friend(friendship: Friendship, friend: User) -> dict:
        return {
            "id": friendship.id,
            "requester_id": friendship.requester_id,
            "recipient_id": friendship.recipient_id,
            "status": friendship.status,
            "created_at": friendship.created_at,
            "updated_at": friendship.updated_at,
            "friend": friend,
        }
