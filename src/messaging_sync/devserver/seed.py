"""Demo users and conversations for a fresh development server."""
from __future__ import annotations

from messaging_sync.devserver.state import MessagingState
from messaging_sync.domain.value_objects.enums import UserRole


def seed_demo(state: MessagingState) -> None:
    state.add_user("1", "Ana Student", UserRole.STUDENT, username="ana", email="ana@example.com")
    state.add_user("2", "Bruno Student", UserRole.STUDENT, username="bruno", email="bruno@example.com")
    state.add_user("3", "Acme Corp", UserRole.COMPANY, username="acme", email="jobs@acme.example")
    state.add_user("4", "Carla Coordinator", UserRole.COORDINATOR, username="carla", email="carla@example.com")
    state.add_user("0", "System", UserRole.SYSTEM, username="system")

    direct, _ = state.create_direct("1", "3")
    state.send_message("3", direct.id, "Thanks for applying! Are you free for a call this week?")
    state.send_message("1", direct.id, "Yes, Thursday afternoon works for me.")

    group = state.create_group("4", "Internship cohort", ["1", "2"])
    state.send_message("4", group.id, "Welcome to the cohort channel.")
