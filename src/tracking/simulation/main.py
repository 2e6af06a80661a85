# main.py
# Entry point: replays one tracking session on the asyncio event loop.
# In the apps, the view owns the session and renders each state instead of logging it.

import asyncio
import logging
from typing import List, Optional

import numpy as np

from .models import Coord, SessionStatus, SimulationState
from .eta import format_distance, format_eta
from .scheduler import AsyncioScheduler
from .track_config import CUSTOMER_TRACKING, TrackConfig
from .tracking_session import TrackingSession

logger = logging.getLogger(__name__)

# ------------------------------------------------------------------
# Demo trip (Manila: Quiapo → Cubao)
# ------------------------------------------------------------------
MECHANIC = Coord(14.5995, 120.9842)
CUSTOMER = Coord(14.6091, 121.0223)


async def run(
    config: TrackConfig = CUSTOMER_TRACKING,
    mechanic: Optional[Coord] = MECHANIC,
    customer: Optional[Coord] = CUSTOMER,
    seed: Optional[int] = None,
) -> List[SimulationState]:
    """
    Run a session until the mover arrives and return every state it produced.

    Returns an empty list when tracking is unavailable.
    """
    done = asyncio.Event()
    states: List[SimulationState] = []

    def on_update(state: SimulationState) -> None:
        states.append(state)
        logger.info(f"{format_distance(state):>8} | ETA {format_eta(state):>6} | waypoint {state.waypoint_index}")
        if state.arrived:
            done.set()

    rng = np.random.default_rng(seed) if seed is not None else None
    with TrackingSession(config, AsyncioScheduler(), rng=rng, on_update=on_update) as session:
        status = session.start(mechanic, customer)
        if status is SessionStatus.UNAVAILABLE:
            logger.warning(session.message)
            return states
        if status is SessionStatus.RUNNING:
            await done.wait()
    return states


def main() -> None:
    # ------------------------------------------------------------------
    # Logging setup: configure once here, all modules inherit
    # ------------------------------------------------------------------
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    states = asyncio.run(run())
    print(f"\n--- Session complete: {len(states)} updates ---")


if __name__ == "__main__":
    main()
