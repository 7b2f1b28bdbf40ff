"""Behavioral profile service - per-user cache, locking and persistence policy"""

import copy
import logging
import threading
import zlib
from collections import OrderedDict
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterator, Optional

from fraud_gateway.domain.behavior import (
    DEFAULT_THRESHOLDS,
    AnomalyThresholds,
    apply_transaction,
    build_insights,
    detect_anomalies,
    new_profile,
)
from fraud_gateway.domain.exceptions import StorageError
from fraud_gateway.domain.models import NO_RECENT_DATA, AnomalyResult, BehavioralProfile, Insights, Transaction
from fraud_gateway.infrastructure.observability.metrics import record_anomaly_check, storage_failure_counter
from fraud_gateway.infrastructure.stores import ProfileStore
from fraud_gateway.services.velocity import VelocityTracker

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProfileCache:
    """
    Bounded in-memory profiles keyed by user id.

    Least recently used profiles are evicted once max_profiles is reached;
    they are reloaded from the store on next use. Per-user exclusion comes
    from a fixed pool of locks selected by user id, so lock memory does not
    grow with the number of users.
    """

    def __init__(self, max_profiles: int = 10_000, lock_stripes: int = 64) -> None:
        self.max_profiles = max_profiles
        self._profiles: "OrderedDict[str, BehavioralProfile]" = OrderedDict()
        self._stripes = [threading.RLock() for _ in range(lock_stripes)]
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._profiles)

    @contextmanager
    def locked(self, user_id: str) -> Iterator[None]:
        lock = self._stripes[zlib.crc32(user_id.encode("utf-8")) % len(self._stripes)]
        with lock:
            yield

    def get(self, user_id: str) -> Optional[BehavioralProfile]:
        with self._guard:
            profile = self._profiles.get(user_id)
            if profile is not None:
                self._profiles.move_to_end(user_id)
            return profile

    def put(self, profile: BehavioralProfile) -> None:
        with self._guard:
            self._profiles[profile.user_id] = profile
            self._profiles.move_to_end(profile.user_id)
            while len(self._profiles) > self.max_profiles:
                self._profiles.popitem(last=False)

    def discard(self, user_id: str) -> None:
        with self._guard:
            self._profiles.pop(user_id, None)


class BehavioralProfileService:
    """
    Entry point for behavioral anomaly detection.

    analyze_transaction() scores against the current baseline without
    changing it; update_with_transaction() commits the transaction to the
    baseline. analyze_and_update() runs both under the user's lock.

    Storage failures either raise StorageError (fail_on_storage_error=True)
    or are logged and absorbed: a failed load starts a fresh profile and a
    failed save leaves the in-memory profile authoritative.
    """

    def __init__(
        self,
        store: ProfileStore,
        cache: ProfileCache,
        velocity: VelocityTracker | None = None,
        fail_on_storage_error: bool = False,
        thresholds: AnomalyThresholds = DEFAULT_THRESHOLDS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.cache = cache
        self.velocity = velocity
        self.fail_on_storage_error = fail_on_storage_error
        self.thresholds = thresholds
        self.clock = clock

    def initialize(self, user_id: str) -> BehavioralProfile:
        """Return the user's profile, loading or creating it on first use"""
        with self.cache.locked(user_id):
            return self._ensure_profile(user_id)

    def analyze_transaction(self, transaction: Transaction) -> AnomalyResult:
        with self.cache.locked(transaction.user_id):
            profile = self._ensure_profile(transaction.user_id)
            return self._analyze(profile, transaction)

    def update_with_transaction(self, transaction: Transaction) -> BehavioralProfile:
        with self.cache.locked(transaction.user_id):
            profile = self._ensure_profile(transaction.user_id)
            return self._update(profile, transaction)

    def analyze_and_update(self, transaction: Transaction) -> AnomalyResult:
        """Score against history, then commit to history, atomically per user"""
        with self.cache.locked(transaction.user_id):
            profile = self._ensure_profile(transaction.user_id)
            result = self._analyze(profile, transaction)
            self._update(profile, transaction)
            return result

    def get_profile(self, user_id: str) -> Optional[BehavioralProfile]:
        """Cached or stored profile, without creating one"""
        with self.cache.locked(user_id):
            profile = self.cache.get(user_id)
            if profile is None:
                profile = self._load(user_id)
                if profile is not None:
                    self.cache.put(profile)
            return profile

    def get_insights(self, user_id: str) -> Insights:
        return build_insights(self.get_profile(user_id))

    def clear(self, user_id: str) -> None:
        with self.cache.locked(user_id):
            self.cache.discard(user_id)
            if self.velocity is not None:
                self.velocity.reset(user_id)
            try:
                self.store.delete(user_id)
            except StorageError:
                storage_failure_counter.labels(operation="delete").inc()
                if self.fail_on_storage_error:
                    raise
                logger.exception("Error clearing profile", extra={"user_id": user_id})

    def _analyze(self, profile: BehavioralProfile, transaction: Transaction) -> AnomalyResult:
        velocity = self.velocity.peek(transaction.user_id) if self.velocity is not None else NO_RECENT_DATA
        result = detect_anomalies(profile, transaction, velocity, self.thresholds)
        record_anomaly_check(result.is_anomalous)
        return result

    def _update(self, profile: BehavioralProfile, transaction: Transaction) -> BehavioralProfile:
        # the cached profile is replaced only after _save returns
        updated = copy.deepcopy(profile)
        apply_transaction(updated, transaction, self.clock(), self.thresholds)
        self._save(updated)

        self.cache.put(updated)
        if self.velocity is not None:
            self.velocity.record(transaction.user_id)
        return updated

    def _ensure_profile(self, user_id: str) -> BehavioralProfile:
        profile = self.cache.get(user_id)
        if profile is not None:
            return profile

        profile = self._load(user_id)
        if profile is None:
            profile = new_profile(user_id, self.clock(), self.thresholds)
            self._save(profile)
            logger.info("Created behavioral profile", extra={"user_id": user_id})

        self.cache.put(profile)
        return profile

    def _load(self, user_id: str) -> Optional[BehavioralProfile]:
        try:
            return self.store.load(user_id)
        except StorageError:
            storage_failure_counter.labels(operation="load").inc()
            if self.fail_on_storage_error:
                raise
            logger.exception("Error loading profile, starting fresh", extra={"user_id": user_id})
            return None

    def _save(self, profile: BehavioralProfile) -> None:
        try:
            self.store.save(profile)
        except StorageError:
            storage_failure_counter.labels(operation="save").inc()
            if self.fail_on_storage_error:
                raise
            logger.exception("Error saving profile", extra={"user_id": profile.user_id})
