"""
Local view: the session as seen from this client's seat

Derived from a snapshot plus the server-assigned identity. Never transmitted.
"""

from dataclasses import dataclass

from models import Participant, PlayerId, SessionSnapshot


@dataclass(frozen=True)
class LocalView:
    """Self, opponents (server order) and the participant holding the turn"""

    me: Participant | None = None
    opponents: tuple[Participant, ...] = ()
    active: Participant | None = None

    @property
    def is_my_turn(self) -> bool:
        return self.me is not None and self.active is not None and self.active.id == self.me.id

    @property
    def has_identity(self) -> bool:
        return self.me is not None


EMPTY_VIEW = LocalView()


def derive_local_view(snapshot: SessionSnapshot | None, player_id: PlayerId | None) -> LocalView:
    """
    Project `snapshot` onto the seat `player_id`.

    `me` stays None until an identity is known and matches a participant.
    """
    if snapshot is None:
        return EMPTY_VIEW

    me = snapshot.get_participant(player_id)
    opponents = tuple(
        participant
        for participant in snapshot.players
        if me is None or participant.id != me.id
    )
    return LocalView(me=me, opponents=opponents, active=snapshot.active_participant)
