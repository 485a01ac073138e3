"""
Session context: everything the state machine needs for one active child.

One context per child; switching children means loading a new context.
There is no process-wide generator or ledger instance.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from loguru import logger

from config import Settings, get_settings
from src.content.question_bank import QuestionBank, time_seed
from src.core.models import AnalyticsReport
from src.core.identity import IdentityProvider, StaticIdentity
from src.generation.feedback import FeedbackGenerator
from src.generation.question_generator import QuestionGenerator
from src.generation.transport import TextGenerator, build_text_generator
from src.learning.achievements import ThresholdRule, rules_from_settings
from src.learning.analytics import AnalyticsSummarizer
from src.learning.ledger import ProgressLedger
from src.persistence.records import ChildProfile
from src.persistence.store import RecordStore
from src.persistence.writer import PersistenceWriter


@dataclass
class SessionContext:
    """Collaborators and state bound to one active child."""

    child: ChildProfile
    ledger: ProgressLedger
    questions: QuestionGenerator
    feedback: FeedbackGenerator
    summarizer: AnalyticsSummarizer
    writer: PersistenceWriter
    settings: Settings
    seed_source: Callable[[], int] = time_seed
    rules: tuple[ThresholdRule, ...] = field(default_factory=tuple)
    text_generator: TextGenerator | None = None
    analytics: AnalyticsReport | None = None

    def __post_init__(self):
        if not self.rules:
            self.rules = rules_from_settings(self.settings)

    @property
    def child_id(self) -> str:
        return self.child.id

    @property
    def child_name(self) -> str:
        return self.child.name or self.settings.default_child_name

    async def aclose(self) -> None:
        """Release the text generator's connections, if it holds any."""
        close = getattr(self.text_generator, "close", None)
        if close is not None:
            await close()

    @classmethod
    def build(
        cls,
        child: ChildProfile,
        store: RecordStore | None = None,
        identity: IdentityProvider | None = None,
        text_generator: TextGenerator | None = None,
        settings: Settings | None = None,
        ledger: ProgressLedger | None = None,
        bank: QuestionBank | None = None,
        seed_source: Callable[[], int] = time_seed,
        feedback_seed: int | None = None,
        analytics: AnalyticsReport | None = None,
    ) -> SessionContext:
        """Wire collaborators around an already-known child."""
        settings = settings or get_settings()
        identity = identity or StaticIdentity(child.owner_id)
        return cls(
            child=child,
            ledger=ledger or ProgressLedger(),
            questions=QuestionGenerator(text_generator, bank=bank, settings=settings, seed_source=seed_source),
            feedback=FeedbackGenerator(text_generator, settings=settings, seed=feedback_seed, seed_source=seed_source),
            summarizer=AnalyticsSummarizer(text_generator, settings=settings),
            writer=PersistenceWriter(store, identity),
            settings=settings,
            seed_source=seed_source,
            text_generator=text_generator,
            analytics=analytics,
        )

    @classmethod
    async def load(
        cls,
        child_id: str,
        store: RecordStore,
        identity: IdentityProvider,
        text_generator: TextGenerator | None = None,
        settings: Settings | None = None,
        **kwargs,
    ) -> SessionContext:
        """
        Load a child's profile and progress from the store.

        Progress that cannot be read (store error, no record yet, a record
        that fails ledger validation) starts from zeros; the latest stored
        analytics report, if any, becomes the held report. An unknown child
        raises LookupError.
        """
        settings = settings or get_settings()
        if text_generator is None:
            text_generator = build_text_generator(settings)

        writer = PersistenceWriter(store, identity)
        child_result = await writer.attempt("get_child", lambda s, owner: s.get_child(owner, child_id))
        if child_result.ok and child_result.value is None:
            raise LookupError(f"Child {child_id} not found")
        if not child_result.ok:
            owner = identity.current_user_id() or settings.local_user_id
            logger.warning(f"Could not read child {child_id}; continuing with a local profile")
            child = ChildProfile(id=child_id, owner_id=owner, name=settings.default_child_name)
        else:
            child = child_result.value

        progress = await writer.load_progress(child_id)
        try:
            ledger = ProgressLedger.from_record(progress.value if progress.ok else None)
        except (TypeError, ValueError) as e:
            logger.warning(f"Stored progress for {child_id} is unreadable ({e}); starting from zeros")
            ledger = ProgressLedger()

        latest = await writer.load_latest_analytics(child_id)
        logger.info(f"Loaded {child.name}: {ledger.total_points} points, {ledger.total_answers} answers")

        return cls.build(
            child,
            store=store,
            identity=identity,
            text_generator=text_generator,
            settings=settings,
            ledger=ledger,
            analytics=latest.value if latest.ok else None,
            **kwargs,
        )

    @classmethod
    async def for_new_child(
        cls,
        name: str,
        age: int,
        store: RecordStore,
        identity: IdentityProvider,
        text_generator: TextGenerator | None = None,
        settings: Settings | None = None,
        **kwargs,
    ) -> SessionContext:
        """Create a child profile (best effort) and a zeroed context for it."""
        settings = settings or get_settings()
        if text_generator is None:
            text_generator = build_text_generator(settings)

        writer = PersistenceWriter(store, identity)
        created = await writer.attempt("create_child", lambda s, owner: s.create_child(owner, name, age))
        if created.ok:
            child = created.value
        else:
            owner = identity.current_user_id() or settings.local_user_id
            child = ChildProfile(id=f"local-{name.lower()}", owner_id=owner, name=name, age=age)

        return cls.build(
            child,
            store=store,
            identity=identity,
            text_generator=text_generator,
            settings=settings,
            **kwargs,
        )
