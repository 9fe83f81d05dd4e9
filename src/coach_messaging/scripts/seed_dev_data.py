"""Seed development data: a coach with three clients, a short thread and a pending broadcast."""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import timedelta

from coach_messaging.application.dto.broadcast import ScheduleBroadcastDTO
from coach_messaging.application.dto.message import NewMessageDTO
from coach_messaging.application.dto.principal import Principal
from coach_messaging.application.ports.clock import SystemClock
from coach_messaging.domain.value_objects.audience import AllClients
from coach_messaging.domain.value_objects.enums import ActorKind
from coach_messaging.infrastructure.db.models import ClientModel, WorkoutModel
from coach_messaging.infrastructure.db.session import AsyncSessionLocal
from coach_messaging.infrastructure.db.uow import SqlAlchemyUoW
from coach_messaging.services import broadcast_service, thread_service

logger = logging.getLogger(__name__)


async def seed() -> None:
    clock = SystemClock()
    coach_id = uuid.uuid4()
    client_ids = [uuid.uuid4() for _ in range(3)]
    workout_id = uuid.uuid4()

    async with AsyncSessionLocal() as session:
        for client_id in client_ids:
            session.add(ClientModel(id=client_id, user_id=uuid.uuid4(), coach_id=coach_id, is_active=True))
        session.add(WorkoutModel(id=workout_id, coach_id=coach_id, name="Leg day"))
        await session.commit()

        uow = SqlAlchemyUoW(session)
        first = client_ids[0]
        conversation = [
            (first, "Hi coach, can we move Thursday's session?"),
            (coach_id, "Sure, does 6pm work?"),
            (first, "Perfect, thanks!"),
        ]
        for sender_id, body in conversation:
            await thread_service.append_message(
                NewMessageDTO(coach_id=coach_id, client_id=first, sender_id=sender_id, body=body),
                uow,
                clock,
            )
        await uow.commit()

        gm = await broadcast_service.schedule_broadcast(
            ScheduleBroadcastDTO(
                title="Schedule change",
                body="Leg day moved to 6pm",
                audience=AllClients(),
                scheduled_at=clock.now() + timedelta(minutes=5),
                require_confirmation=True,
                workout_id=workout_id,
            ),
            Principal(kind=ActorKind.COACH, subject_id=coach_id),
            uow,
            clock,
        )

    logger.info("Seeded coach %s with clients %s", coach_id, ", ".join(map(str, client_ids)))
    logger.info("Broadcast %s scheduled for %s", gm.id, gm.scheduled_at.isoformat())


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
