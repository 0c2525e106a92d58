"""channel_registry.py
Maps logical channel roles onto channels of the connected instruments.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from config_store import ConfigStore
from errors import (ChannelInUse, ConfigError, InstrumentNotConnected, InvalidChannel,
                    NoInstrumentSelected)
from smu_base import SMU

logger = logging.getLogger(__name__)

MAX_INSTRUMENTS = 4


class ChannelRole(Enum):
    SOURCE_DRAIN = "sd"
    GATE = "gate"
    PROBE_A = "4pp1"
    PROBE_B = "4pp2"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def default_instrument(self) -> int:
        return list(ChannelRole).index(self)


_LABELS = {
    ChannelRole.SOURCE_DRAIN: "Source-drain",
    ChannelRole.GATE: "Gate",
    ChannelRole.PROBE_A: "Four-point-probe 1",
    ChannelRole.PROBE_B: "Four-point-probe 2",
}


@dataclass(frozen=True)
class ChannelSelection:
    instrument: int
    channel: int = 0


class ChannelRegistry:
    """Tracks which (instrument, channel) pair backs each :class:`ChannelRole`.

    Parameters
    ----------
    instruments : list
        Instrument table owned by the connection layer, one slot per
        instrument index with ``None`` for empty slots. The registry only
        reads it, so reconnections are picked up on the next resolution.
    store : ConfigStore
        Where role selections are persisted.
    """

    def __init__(self, instruments: List[Optional[SMU]], store: ConfigStore):
        self.instruments = instruments
        self.store = store

    # ------------------------------------------------------------------
    @staticmethod
    def _keys(role: ChannelRole) -> Tuple[str, str]:
        return f"channels/{role.value}/instrument", f"channels/{role.value}/channel"

    def selection(self, role: ChannelRole) -> ChannelSelection:
        inst_key, chan_key = self._keys(role)
        return ChannelSelection(
            self.store.get_int(inst_key, role.default_instrument),
            self.store.get_int(chan_key, 0),
        )

    def select(self, role: ChannelRole, instrument: int, channel: int = 0) -> ChannelSelection:
        sel = ChannelSelection(int(instrument), int(channel))
        inst_key, chan_key = self._keys(role)
        self.store.set_int(inst_key, sel.instrument)
        self.store.set_int(chan_key, sel.channel)
        return sel

    # ------------------------------------------------------------------
    def resolve(self, role: ChannelRole, selection: Optional[ChannelSelection] = None) -> SMU:
        """Return the live channel for ``role``.

        The attempted selection is persisted before any check so the choice
        survives even when the instrument is not connected yet.
        """
        sel = selection or self.selection(role)
        self.select(role, sel.instrument, sel.channel)

        if not 0 <= sel.instrument < MAX_INSTRUMENTS:
            raise NoInstrumentSelected(role, f"{role.label} channel: no instrument selected.")

        inst = self.instruments[sel.instrument] if sel.instrument < len(self.instruments) else None
        if inst is None:
            raise InstrumentNotConnected(
                role, f"{role.label} channel: instrument {sel.instrument + 1} is not connected."
            )

        count = inst.channel_count
        if count <= 1:
            return inst
        if not 0 <= sel.channel < count:
            raise InvalidChannel(
                role,
                f"{role.label} channel: {inst.name} has no channel {sel.channel} "
                f"(valid: 0-{count - 1}).",
            )
        return inst.channel(sel.channel)

    def resolve_all(self, roles: Iterable[ChannelRole]) -> Tuple[Dict[ChannelRole, SMU], Dict[ChannelRole, ConfigError]]:
        """Resolve every role independently, collecting failures instead of stopping.

        A physical channel is owned by one role; later roles landing on the
        same channel are reported as :class:`ChannelInUse`.
        """
        channels: Dict[ChannelRole, SMU] = {}
        errors: Dict[ChannelRole, ConfigError] = {}
        for role in roles:
            try:
                smu = self.resolve(role)
                owner = next((r for r, ch in channels.items() if ch is smu), None)
                if owner is not None:
                    sel = self.selection(role)
                    raise ChannelInUse(
                        role,
                        f"{role.label} channel: instrument {sel.instrument + 1}, channel {sel.channel} "
                        f"is already assigned to the {owner.label} channel.",
                    )
                channels[role] = smu
            except ConfigError as exc:
                logger.debug("Could not resolve %s: %s", role.name, exc)
                errors[role] = exc
        return channels, errors

    def describe(self, roles: Sequence[ChannelRole] = tuple(ChannelRole)) -> Dict[ChannelRole, str]:
        """Human readable summary of the current selection per role."""
        out = {}
        for role in roles:
            sel = self.selection(role)
            out[role] = f"instrument {sel.instrument + 1}, channel {sel.channel}"
        return out
