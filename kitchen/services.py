"""Wiring of the session, sync and notification components for one app."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from kitchen.api import KitchenApiClient
from kitchen.audio import BellChime, ChimePlayer, default_chime
from kitchen.config import BASE_TITLE, MAX_ORDERS, POLL_DEBOUNCE_SECONDS, POLL_INTERVAL_SECONDS
from kitchen.desktop import DesktopNotifier, PermissionBroker
from kitchen.diff import DiffEngine
from kitchen.fetcher import OrderSnapshotFetcher
from kitchen.notification_settings import NotificationSettingsStore
from kitchen.notifications import CallbackTitleBadge, NotificationCoordinator
from kitchen.persistence import KeyValueStore
from kitchen.scheduler import PollingScheduler
from kitchen.session import SessionStore
from kitchen.sync import MessageWatcher, OrderSynchronizer, combine_polls


@dataclass
class KitchenServices:
    store: KeyValueStore
    api: KitchenApiClient
    session: SessionStore
    settings: NotificationSettingsStore
    coordinator: NotificationCoordinator
    diff_engine: DiffEngine
    synchronizer: OrderSynchronizer
    messages: MessageWatcher
    scheduler: PollingScheduler


def build_services(
    store: KeyValueStore,
    api: KitchenApiClient,
    title_setter: Callable[[str], None],
    bell: Callable[[], None] | None = None,
    chime: ChimePlayer | None = None,
    notifier: PermissionBroker | None = None,
    period: float = POLL_INTERVAL_SECONDS,
    debounce: float = POLL_DEBOUNCE_SECONDS,
    max_orders: int = MAX_ORDERS,
    base_title: str = BASE_TITLE,
) -> KitchenServices:
    """Build the component graph and connect logout to every session-scoped piece."""
    session = SessionStore(store)
    settings = NotificationSettingsStore(store)
    if chime is None:
        chime = default_chime()
        if bell is not None:
            chime.add_strategy(BellChime(bell))
    coordinator = NotificationCoordinator(
        settings,
        chime,
        notifier if notifier is not None else DesktopNotifier(store),
        CallbackTitleBadge(title_setter),
        base_title=base_title,
    )
    diff_engine = DiffEngine()
    synchronizer = OrderSynchronizer(session, OrderSnapshotFetcher(api, max_orders), diff_engine, coordinator)
    messages = MessageWatcher(session, api, coordinator)
    scheduler = PollingScheduler(combine_polls(synchronizer.poll, messages.poll), period=period, debounce=debounce)

    # A rejected credential anywhere ends the session.
    api.on_unauthenticated = session.logout
    session.add_logout_listener(scheduler.stop)
    session.add_logout_listener(synchronizer.reset)
    session.add_logout_listener(messages.reset)
    session.add_logout_listener(coordinator.reset)

    return KitchenServices(
        store=store,
        api=api,
        session=session,
        settings=settings,
        coordinator=coordinator,
        diff_engine=diff_engine,
        synchronizer=synchronizer,
        messages=messages,
        scheduler=scheduler,
    )
