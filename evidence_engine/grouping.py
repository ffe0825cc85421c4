"""
Asset Grouper
=============

Pure functions that arrange a case's photos for layout.

- group_by_room: rooms in creation order, each split into check-in / handover
- split_by_phase: one flat chronological list per phase (short stays)

Nothing is dropped: photos with no room, or a room id we don't know, land in
the trailing "(no room)" group.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Asset, Phase, Room, RoomGroup, UNGROUPED_ROOM_NAME, VIDEO_TYPE


def _chronological(assets: Iterable[Asset]) -> List[Asset]:
    # sorted() is stable, so equal timestamps keep input order
    return sorted(assets, key=lambda a: a.created_at)


def _room_order(rooms: Iterable[Room]) -> List[Room]:
    indexed = list(enumerate(rooms))
    indexed.sort(key=lambda item: (item[1].created_at or datetime.min, item[0]))
    return [room for _, room in indexed]


def photos_only(assets: Iterable[Asset]) -> List[Asset]:
    return [a for a in assets if a.is_photo]


def group_by_room(
    rooms: Iterable[Room],
    assets: Iterable[Asset],
) -> List[RoomGroup]:
    """
    Group photos by room and phase.

    Args:
        rooms: Rooms of the case (any order; sorted by created_at)
        assets: All assets of the case; non-photo assets are ignored

    Returns:
        RoomGroup list in room creation order, "(no room)" last
    """
    ordered_rooms = _room_order(rooms)
    groups: Dict[str, RoomGroup] = {
        room.room_id: RoomGroup(room_id=room.room_id, room_name=room.name)
        for room in ordered_rooms
    }
    ungrouped = RoomGroup(room_id=None, room_name=UNGROUPED_ROOM_NAME)

    for asset in _chronological(photos_only(assets)):
        target = groups.get(asset.room_id) if asset.room_id else None
        if target is None:
            target = ungrouped
        if asset.photo_phase == Phase.HANDOVER:
            target.handover.append(asset)
        else:
            target.checkin.append(asset)

    result = [groups[room.room_id] for room in ordered_rooms]
    result.append(ungrouped)
    return [g for g in result if g.photo_count]


def split_by_phase(assets: Iterable[Asset]) -> Tuple[List[Asset], List[Asset]]:
    """Return (check-in photos, handover photos), each in chronological order"""
    checkin: List[Asset] = []
    handover: List[Asset] = []
    for asset in _chronological(photos_only(assets)):
        if asset.photo_phase == Phase.HANDOVER:
            handover.append(asset)
        else:
            checkin.append(asset)
    return checkin, handover


def find_video(assets: Iterable[Asset], phase: str) -> Optional[Asset]:
    """First walkthrough video recorded for a phase ('check-in' or 'handover')"""
    for asset in _chronological(assets):
        if asset.type == VIDEO_TYPE and asset.phase == phase:
            return asset
    return None
