import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.exceptions import ConflictError, InvalidOperationError, NotFoundError
from app.db.locks import LockRegistry
from app.db.repository import Repository
from app.groups import voting
from app.groups.models import Activity, ActivityVote, FinalActivity, GroupMember, TravelGroup
from app.groups.schemas import ActivityOut, PlaceIn
from app.users.models import User
from app.utils.toggle import toggle_id

logger = logging.getLogger(__name__)


class GroupService:
    """
    Travel groups, their members and the proposal / vote / finalize cycle.

    Every mutation of a group runs under that group's lock and commits
    before returning.
    """

    def __init__(self, db: AsyncSession, locks: LockRegistry):
        self.db = db
        self.locks = locks
        self.groups = Repository(db, TravelGroup)
        self.users = Repository(db, User)

    def _lock(self, group_id: int):
        return self.locks.hold(("group", group_id))

    async def _commit(self, action: str):
        await self.groups.commit(action)

    async def get_group(self, group_id: int) -> TravelGroup:
        group = await self.groups.get(group_id)
        if not group:
            raise NotFoundError("Group not found")
        return group

    # ===============================
    # GROUPS
    # ===============================
    async def create_group(self, name: str, creator_id: int) -> TravelGroup:
        if not await self.users.get(creator_id):
            raise NotFoundError("User not found")

        group = TravelGroup(name=name, creator_id=creator_id)
        # The creator is always the first member
        group.members.append(GroupMember(user_id=creator_id))
        await self.groups.add(group)
        await self._commit("creating group")

        logger.info(f"Group created: id={group.id}, name={group.name}, by creator_id={creator_id}")
        return await self.get_group(group.id)

    async def list_groups(self, user_id: Optional[int] = None) -> List[TravelGroup]:
        if user_id is None:
            return await self.groups.list(order_by=[TravelGroup.id])
        return await self.groups.list(
            TravelGroup.members.any(GroupMember.user_id == user_id),
            order_by=[TravelGroup.id],
        )

    async def delete_group(self, group_id: int) -> None:
        async with self._lock(group_id):
            group = await self.get_group(group_id)
            await self.groups.delete(group)
            await self._commit("deleting group")
        logger.info(f"Group deleted: id={group_id}")

    # ===============================
    # MEMBERS
    # ===============================
    async def add_member(self, group_id: int, user_id: int) -> TravelGroup:
        async with self._lock(group_id):
            group = await self.get_group(group_id)
            if not await self.users.get(user_id):
                raise NotFoundError("User not found")
            if group.has_member(user_id):
                raise ConflictError("User already in group")

            group.members.append(GroupMember(user_id=user_id))
            await self._commit("adding member")

        logger.info(f"Member added: group_id={group_id}, user_id={user_id}")
        return await self.get_group(group_id)

    async def remove_member(self, group_id: int, user_id: int) -> None:
        """Existing votes of the removed member are kept."""
        async with self._lock(group_id):
            group = await self.get_group(group_id)
            member = next((m for m in group.members if m.user_id == user_id), None)
            if member is None:
                raise NotFoundError("Member not found")
            if user_id == group.creator_id:
                raise InvalidOperationError("Cannot remove the group creator")

            group.members.remove(member)
            await self._commit("removing member")

        logger.info(f"Member removed: group_id={group_id}, user_id={user_id}")

    async def get_members(self, group_id: int) -> List[dict]:
        group = await self.get_group(group_id)
        members = []
        for member in group.members:
            if member.user is None:
                continue
            data = {
                column: getattr(member.user, column)
                for column in ("id", "name", "address", "bio", "hometown", "age", "profile_picture", "created_at")
            }
            data["added_at"] = member.added_at
            members.append(data)
        return members

    # ===============================
    # PROPOSED ACTIVITIES
    # ===============================
    async def propose_activity(self, group_id: int, place: PlaceIn, user_id: int) -> Activity:
        """No duplicate check: the same place can be proposed several times."""
        async with self._lock(group_id):
            group = await self.get_group(group_id)
            if not group.has_member(user_id):
                raise InvalidOperationError("User is not a member of this group")

            activity = Activity(
                name=place.name,
                address=place.address,
                place_id=place.place_id,
                rating=place.rating,
                lat=place.lat,
                lng=place.lng,
                types=list(place.types),
                added_by=user_id,
            )
            group.activities.append(activity)
            await self._commit("proposing activity")

        logger.info(f"Activity proposed: group_id={group_id}, activity_id={activity.id}, by user_id={user_id}")
        return await Repository(self.db, Activity).get(activity.id)

    async def list_activities(self, group_id: int) -> List[Activity]:
        group = await self.get_group(group_id)
        return list(group.activities)

    async def vote(self, group_id: int, activity_id: int, user_id: int) -> dict:
        """
        Toggle the user's vote, then recompute the quorum from the current
        member count. When the quorum is reached the activity is finalized
        in the same unit of work.

        Adding a vote requires membership; a voter removed from the group
        can still withdraw the vote they left behind.
        """
        async with self._lock(group_id):
            group = await self.get_group(group_id)
            activity = group.find_activity(activity_id)
            if activity is None:
                raise NotFoundError("Activity not found")
            if user_id not in activity.votes and not group.has_member(user_id):
                raise InvalidOperationError("User is not a member of this group")

            new_votes = toggle_id(activity.votes, user_id)
            if user_id in new_votes:
                activity.vote_rows.append(ActivityVote(user_id=user_id))
            else:
                row = next(r for r in activity.vote_rows if r.user_id == user_id)
                activity.vote_rows.remove(row)

            result = voting.tally(len(new_votes), group.member_count)
            snapshot = ActivityOut.model_validate(activity).model_copy(update={"votes": new_votes})

            finalized = False
            if result.reached:
                self._move_to_final(group, activity, new_votes)
                finalized = True

            await self._commit("voting")

        logger.info(
            f"Vote toggled: group_id={group_id}, activity_id={activity_id}, user_id={user_id}, "
            f"votes={result.votes}/{result.votes_needed}"
        )
        if finalized:
            logger.info(f"Activity auto-finalized: group_id={group_id}, activity_id={activity_id}")

        return {
            "success": True,
            "activity": snapshot,
            "votes": result.votes,
            "votes_needed": result.votes_needed,
            "auto_finalized": result.reached,
            "finalized": finalized,
        }

    @staticmethod
    def _move_to_final(group: TravelGroup, activity: Activity, votes: List[int]) -> FinalActivity:
        final = FinalActivity(
            activity_id=activity.id,
            name=activity.name,
            address=activity.address,
            place_id=activity.place_id,
            rating=activity.rating,
            lat=activity.lat,
            lng=activity.lng,
            types=list(activity.types or []),
            added_by=activity.added_by,
            added_at=activity.added_at,
            votes=list(votes),
            agreed_at=datetime.now(timezone.utc),
        )
        group.final_activities.append(final)
        group.activities.remove(activity)
        return final

    async def finalize_activity(self, group_id: int, activity_id: int) -> FinalActivity:
        async with self._lock(group_id):
            group = await self.get_group(group_id)
            activity = group.find_activity(activity_id)
            if activity is None:
                raise NotFoundError("Activity not found")

            final = self._move_to_final(group, activity, activity.votes)
            await self._commit("finalizing activity")

        logger.info(f"Activity finalized: group_id={group_id}, activity_id={activity_id}")
        return final

    async def remove_activity(self, group_id: int, activity_id: int) -> None:
        async with self._lock(group_id):
            group = await self.get_group(group_id)
            activity = group.find_activity(activity_id)
            if activity is None:
                raise NotFoundError("Activity not found")

            group.activities.remove(activity)
            await self._commit("removing activity")

        logger.info(f"Activity removed: group_id={group_id}, activity_id={activity_id}")

    # ===============================
    # FINAL ACTIVITIES
    # ===============================
    async def list_final_activities(self, group_id: int) -> List[FinalActivity]:
        group = await self.get_group(group_id)
        return list(group.final_activities)

    async def remove_final_activity(self, group_id: int, final_id: int) -> None:
        async with self._lock(group_id):
            group = await self.get_group(group_id)
            final = group.find_final_activity(final_id)
            if final is None:
                raise NotFoundError("Activity not found")

            group.final_activities.remove(final)
            await self._commit("removing final activity")

        logger.info(f"Final activity removed: group_id={group_id}, final_id={final_id}")
