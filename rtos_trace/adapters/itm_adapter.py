"""
Adapter for ITM text logs.

Older firmware printed profiler events over ITM as text frames:

    <ITM>S|0001F4A0|Work<END>          task start
    <ITM>E|0001F5B0|Work<END>          task end
    <ITM>TC|0001F000|Work<END>         task create (opens the task like S)
    <ITM>ISR|0001F500|UART|START<END>  ISR enter
    <ITM>ISR|0001F520|UART|END<END>    ISR exit

Timestamps are hexadecimal cycle counts. Anything between frames is
ignored. Names are interned into the session symbol tables so the frames go
through the same reconstructor as binary events.
"""

import logging
import re

from .base import TraceAdapter
from ..core.errors import ErrorCode
from ..timeline.model import TimelineResult


logger = logging.getLogger(__name__)

ITM_MARKER = b'<ITM>'

FRAME_PATTERN = re.compile(
    r'<ITM>(TC|S|E|ISR)\|([0-9A-Fa-f]+)\|([^|<]+)(?:\|([^|<]+))?(?:\|([^<]+))?<END>'
)


class ItmLogAdapter(TraceAdapter):
    """Decoder for '<ITM>...<END>' text frames."""

    format_name = 'itm'

    def decode(self, data: bytes) -> TimelineResult:
        session = self.new_session()
        rec = session.reconstructor

        if isinstance(data, str):
            text = data
        else:
            text = bytes(data).decode('utf-8', errors='replace')

        frames = 0
        for match in FRAME_PATTERN.finditer(text):
            frame_type, ts_hex, name, param1, _param2 = match.groups()
            timestamp = int(ts_hex, 16)
            frames += 1

            if frame_type == 'ISR':
                id = session.isr_names.intern(name)
                if id is None:
                    session.diagnostics.add(
                        ErrorCode.E2004_SYMBOL_TABLE_FULL, isr=name, timestamp=timestamp,
                    )
                    continue
                state = (param1 or '').strip().upper()
                if state == 'START':
                    rec.isr_enter(id, timestamp)
                elif state == 'END':
                    rec.isr_exit(id, timestamp)
                else:
                    session.diagnostics.add(
                        ErrorCode.E1003_UNKNOWN_EVENT_KIND,
                        offset=match.start(),
                        kind=f"ISR:{param1}",
                    )
                continue

            id = session.task_names.intern(name)
            if id is None:
                session.diagnostics.add(
                    ErrorCode.E2004_SYMBOL_TABLE_FULL, task=name, timestamp=timestamp,
                )
                continue

            # A created task is running from its creation stamp
            if frame_type in ('S', 'TC'):
                rec.task_start(id, timestamp)
            else:
                rec.task_end(id, timestamp)

        logger.debug(f"Matched {frames} ITM frames in {len(text)} characters")
        return session.finish()
