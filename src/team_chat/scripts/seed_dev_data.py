"""Seed development data: three users, #general with some history, one DM."""
from __future__ import annotations

import asyncio
import logging
import uuid

from sqlalchemy.dialects.postgresql import insert as pg_insert

from team_chat.domain.value_objects.ids import UserRef
from team_chat.infrastructure.db.models.user import UserModel
from team_chat.infrastructure.db.session import AsyncSessionLocal
from team_chat.infrastructure.db.uow import SqlAlchemyUoW
from team_chat.services import channel_service, message_service

logger = logging.getLogger(__name__)

USERS = [
    ("u_alice", "Alice", "alice@example.com"),
    ("u_bob", "Bob", "bob@example.com"),
    ("u_carol", "Carol", "carol@example.com"),
]


async def seed() -> None:
    async with AsyncSessionLocal() as session:
        await session.execute(
            pg_insert(UserModel)
            .values([{"subject": s, "name": n, "email": e} for s, n, e in USERS])
            .on_conflict_do_nothing(index_elements=["subject"])
        )
        await session.commit()

        uow = SqlAlchemyUoW(session)
        alice, bob, carol = (UserRef(s) for s, _, _ in USERS)

        general, _ = await channel_service.provision_public_channel("general", alice, uow)
        for ref in (bob, carol):
            await channel_service.join_channel(ref, general.id, uow)

        history = [
            (alice, "Morning all"),
            (bob, "Morning! Standup in 10"),
            (carol, "On my way"),
        ]
        for sender, text in history:
            await message_service.append(
                general.id, sender, text, uow, client_msg_id=uuid.uuid4(),
            )

        dm = await channel_service.find_or_create_direct_channel(alice, bob, uow)
        await message_service.append(
            dm.id, alice, "Got a minute after standup?", uow, client_msg_id=uuid.uuid4(),
        )
        logger.info("Seeded #general (%s) and DM %s", general.id, dm.name)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(seed())


if __name__ == "__main__":
    main()
