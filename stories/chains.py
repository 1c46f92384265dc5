"""Event chain catalog: short escalating sagas around players, clubs and contacts.

Chains run on their own 52-week calendar, at most three at a time, with a
10% weekly chance of a new one starting. Choice effects are not authored
per tag; they scale with the escalation level of the stage that offered
the choice (see :func:`escalation_effects`).
"""

from __future__ import annotations

from dataclasses import dataclass

from narrative.effects import Effect, EffectTable
from narrative.models import Choice, EventDraft, Instance, Stage, StoryContext, Template
from narrative.registry import TemplateRegistry
from narrative.rng import RNG
from world.models import WorldSnapshot

from .helpers import count_players, invented_name, own_club, pick_club, pick_contact, pick_player, related


def _gone(snapshot: WorldSnapshot, player_id: str) -> bool:
    return bool(player_id) and player_id not in snapshot.players


# ── 1. Dressing Room Conflict ───────────────────────────────────


@dataclass(frozen=True)
class DressingRoomContext(StoryContext):
    player1_id: str = ""
    player1_name: str = "a player"
    player2_id: str = ""
    player2_name: str = "a player"
    club_id: str = ""
    club_name: str = "a rival club"

    @classmethod
    def build(cls, snapshot: WorldSnapshot, rng: RNG) -> DressingRoomContext:
        p1_id, p1_name = pick_player(snapshot, rng)
        p2_id, p2_name = pick_player(snapshot, rng)
        club_id, club_name = pick_club(snapshot, rng)
        return cls(
            player1_id=p1_id,
            player1_name=p1_name,
            player2_id=p2_id,
            player2_name=p2_name,
            club_id=club_id,
            club_name=club_name,
        )


def _conflict_tensions(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = DressingRoomContext.of(instance)
    return EventDraft(
        type="playerControversy",
        title="Dressing Room Tensions",
        body=(
            f"Reports are emerging from {ctx.club_name} about a growing rift between "
            f"{ctx.player1_name} and {ctx.player2_name}. Sources inside the club describe a "
            "training ground confrontation that had to be broken up by coaching staff. The "
            "tension is affecting team morale and could impact the transfer value of both "
            "players. Worth monitoring closely."
        ),
        related_ids=related(ctx.player1_id, ctx.player2_id, ctx.club_id),
    )


def _conflict_escalation(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = DressingRoomContext.of(instance)
    escalated = instance.choice_at(0) in (None, 1)
    if escalated:
        title = "Conflict Escalates"
        body = (
            f"The situation at {ctx.club_name} has deteriorated. {ctx.player1_name} gave a "
            f"thinly-veiled interview criticising a teammate, and {ctx.player2_name} responded "
            "on social media. The manager has called an emergency meeting. One of them will "
            "likely be made available for transfer. Your assessment of which player retains "
            "value could be critical."
        )
    else:
        title = "Conflict Being Managed"
        body = (
            f"The mediation at {ctx.club_name} appears to be working. {ctx.player1_name} and "
            f"{ctx.player2_name} were seen training together this week, though sources say the "
            "relationship remains fragile. The club may still look to move one of them in the "
            "next window."
        )
    return EventDraft(
        type="playerControversy",
        title=title,
        body=body,
        related_ids=related(ctx.player1_id, ctx.player2_id, ctx.club_id),
        escalation_level=1 if escalated else 0,
    )


def _conflict_outcome(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = DressingRoomContext.of(instance)
    choice = instance.choice_at(1)
    if choice == 0:
        if rng.chance(0.6):
            title = "Shrewd Transfer Call"
            body = (
                f"Your recommendation to sign the outcast from {ctx.club_name} has paid off. The "
                "player, freed from the toxic dynamic, has shown renewed energy and "
                "professionalism. Your judgment on character under pressure has been validated."
            )
        else:
            title = "Transfer Gamble Backfires"
            body = (
                f"The player you recommended from {ctx.club_name} brought the same attitude "
                "problems to their new environment. The dressing room conflict wasn't a one-off; "
                "it's a pattern. A lesson in the limits of scouting from a distance."
            )
    elif choice == 1:
        title = "Sound Warning Heeded"
        body = (
            f"Your warning about the {ctx.club_name} situation was well-received. The club "
            "avoided what could have been a costly character misjudgment. Both players have "
            "since left the club, and the reviews on their conduct at new teams are mixed. "
            "Caution proved the right call."
        )
    else:
        title = "Dressing Room Saga Concludes"
        body = (
            f"The conflict at {ctx.club_name} has finally been resolved. {ctx.player1_name} was "
            f"sold in a cut-price deal, while {ctx.player2_name} signed an extension. The chapter "
            "is closed, but the intelligence gathered during the saga will inform future "
            "assessments."
        )
    return EventDraft(
        type="playerControversy",
        title=title,
        body=body,
        related_ids=related(ctx.player1_id, ctx.player2_id, ctx.club_id),
    )


DRESSING_ROOM_CONFLICT = Template(
    id="dressingRoomConflict",
    name="Dressing Room Conflict",
    can_trigger=lambda s: len(s.players) >= 5 and s.scout.career_tier >= 2,
    init_context=DressingRoomContext.build,
    stages=(
        Stage(week_delay=0, generate=_conflict_tensions),
        Stage(
            week_delay=3,
            escalation_level=1,
            generate=_conflict_escalation,
            choices=(
                Choice("Recommend signing the outcast", "conflictSign"),
                Choice("Warn your club to avoid", "conflictAvoid"),
                Choice("Monitor for another week", "conflictWait"),
            ),
        ),
        Stage(week_delay=3, generate=_conflict_outcome),
    ),
)


# ── 2. Transfer Saga ────────────────────────────────────────────


@dataclass(frozen=True)
class TransferSagaContext(StoryContext):
    player_id: str = ""
    player_name: str = "a player"
    club_id: str = ""
    club_name: str = "a rival club"
    bid_amount: int = 0  # millions

    @classmethod
    def build(cls, snapshot: WorldSnapshot, rng: RNG) -> TransferSagaContext:
        player_id, player_name = pick_player(snapshot, rng)
        club_id, club_name = pick_club(snapshot, rng)
        return cls(
            player_id=player_id,
            player_name=player_name,
            club_id=club_id,
            club_name=club_name,
            bid_amount=rng.next_int(5, 40),
        )


def _saga_whispers(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = TransferSagaContext.of(instance)
    return EventDraft(
        type="exclusiveTip",
        title="Transfer Whispers",
        body=(
            f"Multiple sources confirm that {ctx.club_name} are quietly exploring a move for "
            f"{ctx.player_name}. No formal approach yet, but the player's agent has been spotted "
            "at meetings with the club's sporting director. If this progresses, your early "
            "intelligence could be invaluable."
        ),
        related_ids=related(ctx.player_id, ctx.club_id),
    )


def _saga_interest(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft | None:
    ctx = TransferSagaContext.of(instance)
    if _gone(snapshot, ctx.player_id):
        return None
    return EventDraft(
        type="exclusiveTip",
        title="Formal Interest Registered",
        body=(
            f"{ctx.club_name} have made an official enquiry about {ctx.player_name}. The asking "
            f"price is reported to be around {ctx.bid_amount}M. Your earlier intelligence has "
            "been confirmed. The question now is whether the deal progresses and what your role "
            "in it should be."
        ),
        related_ids=related(ctx.player_id, ctx.club_id),
    )


def _saga_bid(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft | None:
    ctx = TransferSagaContext.of(instance)
    if _gone(snapshot, ctx.player_id):
        return None
    if instance.choice_at(1) == 0:
        body = (
            f"Your assessment of {ctx.player_name} is now central to the negotiation. "
            f"{ctx.club_name} have tabled a {ctx.bid_amount}M bid and your report is being used "
            "to evaluate the offer. The next 48 hours are critical."
        )
    else:
        body = (
            f"Despite your concerns, {ctx.club_name} have pressed ahead with a {ctx.bid_amount}M "
            f"bid for {ctx.player_name}. Your warning is on record. If the deal goes through and "
            "the player struggles, your foresight will be remembered."
        )
    return EventDraft(
        type="rivalPoach",
        title="Bid On The Table",
        body=body,
        related_ids=related(ctx.player_id, ctx.club_id),
    )


def _saga_conclusion(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = TransferSagaContext.of(instance)
    if rng.chance(0.7 if instance.choice_at(2) == 0 else 0.3):
        title = "Transfer Completed"
        body = (
            f"The deal for {ctx.player_name} is done. {ctx.club_name} completed the signing at "
            f"{ctx.bid_amount}M. Your involvement throughout the saga has been noted by all "
            "parties. The player's performance in the coming months will be the ultimate "
            "verdict on everyone's judgment, including yours."
        )
    else:
        title = "Transfer Collapses"
        body = (
            f"The {ctx.player_name} deal has fallen through at the last moment. {ctx.club_name} "
            "and the selling club could not agree on personal terms. The saga is over, for now. "
            "Your intelligence throughout the process has demonstrated your value regardless of "
            "the outcome."
        )
    return EventDraft(
        type="transferRuleChange",
        title=title,
        body=body,
        related_ids=related(ctx.player_id, ctx.club_id),
    )


TRANSFER_SAGA = Template(
    id="transferSaga",
    name="Transfer Saga",
    can_trigger=lambda s: len(s.players) >= 3 and s.scout.reputation >= 20,
    init_context=TransferSagaContext.build,
    stages=(
        Stage(week_delay=0, generate=_saga_whispers),
        Stage(
            week_delay=2,
            generate=_saga_interest,
            choices=(
                Choice("Submit a detailed assessment", "transferAssess"),
                Choice("Flag concerns to your club", "transferWarn"),
            ),
        ),
        Stage(
            week_delay=2,
            escalation_level=1,
            generate=_saga_bid,
            choices=(
                Choice("Advocate for the deal", "transferAdvocate"),
                Choice("Recommend rejection", "transferReject"),
            ),
        ),
        Stage(week_delay=3, generate=_saga_conclusion),
    ),
)


# ── 3. Wonderkid Under Pressure ─────────────────────────────────


@dataclass(frozen=True)
class PlayerContext(StoryContext):
    player_id: str = ""
    player_name: str = "a player"


def _young_player_context(max_age: int):
    def build(snapshot: WorldSnapshot, rng: RNG) -> PlayerContext:
        player_id, player_name = pick_player(snapshot, rng, where=lambda p: p.age <= max_age, fallback="")
        if not player_id:
            player_id, player_name = pick_player(snapshot, rng)
        return PlayerContext(player_id=player_id, player_name=player_name)

    return build


def _spotlight(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = PlayerContext.of(instance)
    return EventDraft(
        type="wonderkidPressure",
        title="Media Spotlight on Young Talent",
        body=(
            f"{ctx.player_name} has attracted significant media attention after a string of "
            "impressive performances. National newspapers are running features, agents are "
            "circling, and the pressure on a young player is mounting visibly. How they handle "
            "this will reveal their character."
        ),
        related_ids=related(ctx.player_id),
    )


def _pressure_mounts(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft | None:
    ctx = PlayerContext.of(instance)
    if _gone(snapshot, ctx.player_id):
        return None
    return EventDraft(
        type="wonderkidPressure",
        title="Performance Pressure Mounts",
        body=(
            f"The weight of expectation is showing. {ctx.player_name}'s recent performances have "
            "dipped noticeably: hesitation on the ball, risk-averse decision making, visible "
            'frustration. The media narrative has shifted from "rising star" to "can they handle '
            'it?" Your assessment of their mental resilience could shape their immediate future.'
        ),
        related_ids=related(ctx.player_id),
    )


def _pressure_verdict(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = PlayerContext.of(instance)
    odds = {0: 0.65, 1: 0.5}.get(instance.choice_at(1), 0.3)
    if rng.chance(odds):
        title = "Wonderkid Breaks Through"
        body = (
            f"{ctx.player_name} has responded magnificently. A match-winning performance in a "
            "high-pressure fixture has silenced the doubters and confirmed the talent everyone "
            "suspected was there. The player has emerged stronger from the ordeal. Your role in "
            "their development pathway has been quietly acknowledged."
        )
    else:
        title = "Wonderkid Struggles Continue"
        body = (
            f"Unfortunately, {ctx.player_name} has not been able to handle the pressure. A "
            "series of poor performances and reports of training ground issues suggest the "
            "young talent needs time away from the spotlight. The ceiling remains high, but the "
            "timeline has shifted."
        )
    return EventDraft(type="wonderkidPressure", title=title, body=body, related_ids=related(ctx.player_id))


WONDERKID_PRESSURE = Template(
    id="wonderkidPressure",
    name="Wonderkid Under Pressure",
    can_trigger=lambda s: count_players(s, lambda p: p.age <= 21) >= 1 and s.scout.reputation >= 15,
    init_context=_young_player_context(22),
    stages=(
        Stage(week_delay=0, generate=_spotlight),
        Stage(
            week_delay=3,
            escalation_level=1,
            generate=_pressure_mounts,
            choices=(
                Choice("Recommend patience and protection", "wonderkidProtect"),
                Choice("Suggest a loan move for development", "wonderkidLoan"),
                Choice("Flag as a sell-high opportunity", "wonderkidSell"),
            ),
        ),
        Stage(week_delay=4, generate=_pressure_verdict),
    ),
)


# ── 4. Board Ultimatum ──────────────────────────────────────────


@dataclass(frozen=True)
class ClubContext(StoryContext):
    club_id: str = ""
    club_name: str = "your club"

    @classmethod
    def build(cls, snapshot: WorldSnapshot, rng: RNG) -> ClubContext:
        club_id, club_name = own_club(snapshot)
        return cls(club_id=club_id, club_name=club_name)


def _ultimatum_warning(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = ClubContext.of(instance)
    return EventDraft(
        type="boardroomCoup",
        title="Board Review Warning",
        body=(
            f"The board at {ctx.club_name} has issued a formal notice: the scouting department's "
            "recent recommendations will be reviewed against actual player performance metrics. "
            "This is a routine audit on paper, but the tone of the memo suggests political "
            "intent. Your track record is about to be scrutinised."
        ),
        related_ids=related(ctx.club_id),
    )


def _ultimatum_deadline(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = ClubContext.of(instance)
    return EventDraft(
        type="boardroomCoup",
        title="Board Deadline Approaching",
        body=(
            "The audit results are due next week. Preliminary feedback suggests the board is "
            "split on the scouting department's value. You have one chance to present your "
            "case, backed by data and successful recommendations. How you frame this could "
            "determine whether the department gets expanded or cut."
        ),
        related_ids=related(ctx.club_id),
    )


def _ultimatum_verdict(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = ClubContext.of(instance)
    odds = {0: 0.7, 1: 0.6}.get(instance.choice_at(1), 0.4)
    if rng.chance(odds):
        title = "Board Approves Department"
        body = (
            f"The board review has concluded in your favour. {ctx.club_name}'s scouting "
            "department will continue with renewed backing and a modest budget increase. Your "
            "handling of the political pressure has strengthened your standing."
        )
    else:
        title = "Scouting Budget Reduced"
        body = (
            f"The board review did not go well. {ctx.club_name} has decided to reduce the "
            "scouting department's budget by 20%. You'll need to do more with less. The decision "
            "stings, but the best scouts have always found ways to thrive under constraints."
        )
    return EventDraft(type="budgetCut", title=title, body=body, related_ids=related(ctx.club_id))


BOARD_ULTIMATUM = Template(
    id="boardUltimatum",
    name="Board Ultimatum",
    can_trigger=lambda s: s.scout.career_tier >= 3 and s.scout.current_club_id is not None,
    init_context=ClubContext.build,
    stages=(
        Stage(week_delay=0, generate=_ultimatum_warning),
        Stage(
            week_delay=3,
            escalation_level=1,
            generate=_ultimatum_deadline,
            choices=(
                Choice("Present data-driven defence", "ultimatumData"),
                Choice("Rally internal allies", "ultimatumAllies"),
                Choice("Accept the review gracefully", "ultimatumAccept"),
            ),
        ),
        Stage(week_delay=3, generate=_ultimatum_verdict),
    ),
)


# ── 5. Rival Scout Poaching ─────────────────────────────────────


@dataclass(frozen=True)
class RivalContext(StoryContext):
    rival_id: str = ""
    rival_name: str = "a rival scout"
    player_id: str = ""
    player_name: str = "a player"

    @classmethod
    def build(cls, snapshot: WorldSnapshot, rng: RNG) -> RivalContext:
        rivals = list(snapshot.rival_scouts.values())
        rival = rng.pick(rivals) if rivals else None
        player_id, player_name = pick_player(snapshot, rng)
        return cls(
            rival_id=rival.id if rival else "",
            rival_name=rival.name if rival else "a rival scout",
            player_id=player_id,
            player_name=player_name,
        )


def _rival_spotted(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = RivalContext.of(instance)
    return EventDraft(
        type="rivalPoach",
        title="Rival Scout Spotted",
        body=(
            f"{ctx.rival_name} has been seen at the same fixtures as you, focusing heavily on "
            f"{ctx.player_name}. This isn't coincidence: they appear to be working from similar "
            "intelligence. If they submit their report first, your groundwork could be wasted."
        ),
        related_ids=related(ctx.player_id, ctx.rival_id),
    )


def _rival_move(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = RivalContext.of(instance)
    return EventDraft(
        type="rivalPoach",
        title="Rival Makes Their Move",
        body=(
            f"{ctx.rival_name} has submitted a report on {ctx.player_name} to their club. The "
            "intelligence network confirms it was well-received. You're now in a direct race. "
            "Do you rush your own assessment or take the time to produce something definitive?"
        ),
        related_ids=related(ctx.player_id, ctx.rival_id),
    )


def _rival_outcome(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = RivalContext.of(instance)
    choice = instance.choice_at(1)
    if choice == 0:
        if rng.chance(0.4):
            title = "Beaten to the Punch"
            body = (
                f"Despite rushing, {ctx.rival_name}'s head start was too great. Their report "
                f"reached the decision-makers first and {ctx.player_name} is now on the rival's "
                "shortlist. Speed isn't always enough when the competition started earlier."
            )
        else:
            title = "Speed Wins the Race"
            body = (
                f"Your rapid response paid off. The report on {ctx.player_name} was received "
                f"alongside {ctx.rival_name}'s, and your reputation tipped the balance. The club "
                "is proceeding with your recommendation."
            )
    elif choice == 1:
        if rng.chance(0.65):
            title = "Thoroughness Rewarded"
            body = (
                f"The wait was worth it. Your detailed report on {ctx.player_name} was "
                f"significantly more comprehensive than {ctx.rival_name}'s. Quality over speed: "
                "the decision-makers could see the difference immediately."
            )
        else:
            title = "Too Slow"
            body = (
                "Your thoroughness cost you the window. By the time your report was complete, the "
                f"club had already acted on {ctx.rival_name}'s recommendation. {ctx.player_name} "
                "moved before your assessment could influence the outcome."
            )
    else:
        title = "Strategic Pivot"
        body = (
            f"You redirected your attention to other targets and let {ctx.rival_name} take "
            f"{ctx.player_name}. A pragmatic choice; not every battle is worth fighting. Your "
            "time is better spent on opportunities where you have the advantage."
        )
    return EventDraft(type="rivalPoach", title=title, body=body, related_ids=related(ctx.player_id, ctx.rival_id))


RIVAL_POACHING = Template(
    id="rivalPoaching",
    name="Rival Scout Poaching",
    can_trigger=lambda s: len(s.rival_scouts) >= 1 and len(s.players) >= 3,
    init_context=RivalContext.build,
    stages=(
        Stage(week_delay=0, generate=_rival_spotted),
        Stage(
            week_delay=2,
            escalation_level=1,
            generate=_rival_move,
            choices=(
                Choice("Rush your report immediately", "poachRush"),
                Choice("Take time for a thorough report", "poachThorough"),
                Choice("Pivot to a different target", "poachPivot"),
            ),
        ),
        Stage(week_delay=3, generate=_rival_outcome),
    ),
)


# ── 6. Injury Comeback Trail ────────────────────────────────────

_INJURY_TYPES = ["ACL", "knee ligament", "ankle", "hamstring", "Achilles"]


@dataclass(frozen=True)
class InjuryContext(StoryContext):
    player_id: str = ""
    player_name: str = "a player"
    injury_type: str = "knee"

    @classmethod
    def build(cls, snapshot: WorldSnapshot, rng: RNG) -> InjuryContext:
        player_id, player_name = pick_player(snapshot, rng)
        return cls(player_id=player_id, player_name=player_name, injury_type=rng.pick(_INJURY_TYPES))


def _injury_news(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = InjuryContext.of(instance)
    return EventDraft(
        type="injurySetback",
        title="Major Injury News",
        body=(
            f"{ctx.player_name} has suffered a serious {ctx.injury_type} injury. The initial "
            "prognosis is 4-6 months out. This is a player you've been tracking closely. The "
            "question now is whether the injury fundamentally changes their trajectory or "
            "whether they can come back as strong as before."
        ),
        related_ids=related(ctx.player_id),
    )


def _injury_rehab(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft | None:
    ctx = InjuryContext.of(instance)
    if _gone(snapshot, ctx.player_id):
        return None
    return EventDraft(
        type="injurySetback",
        title="Rehab Progress Report",
        body=(
            f"Sources close to {ctx.player_name}'s rehabilitation report mixed signals. The "
            "physical recovery is on schedule, but there are concerns about the player's "
            "confidence in the affected area. They've been avoiding certain movements in "
            "training. The next few weeks will reveal whether this is a temporary psychological "
            "hurdle or something more permanent."
        ),
        related_ids=related(ctx.player_id),
    )


def _injury_outcome(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = InjuryContext.of(instance)
    optimistic = instance.choice_at(1) == 0
    if rng.chance(0.5):
        title = "Full Recovery Confirmed"
        if optimistic:
            body = (
                f"Your faith in {ctx.player_name} has been vindicated. The player returned to "
                f"full training this week and looked sharp in a reserve fixture. The "
                f"{ctx.injury_type} injury is behind them. Your assessment held firm when others "
                "wavered."
            )
        else:
            body = (
                f"{ctx.player_name} has made a full recovery, looking as dynamic as ever in "
                "training. Your downgraded assessment now looks overly cautious; the player "
                "proved more resilient than expected. A reminder that injury recovery is never "
                "straightforward."
            )
    else:
        title = "Recovery Setback"
        if optimistic:
            body = (
                f"Bad news: {ctx.player_name} suffered a setback in training. The "
                f"{ctx.injury_type} hasn't healed as expected and further surgery may be "
                "required. Your optimistic assessment will need revision. Injury prognosis is an "
                "imprecise science."
            )
        else:
            body = (
                f"Your caution was warranted. {ctx.player_name}'s recovery has hit complications "
                "and the player faces additional time on the sidelines. Your downgraded "
                "assessment protected the club from a potentially costly misjudgment."
            )
    return EventDraft(type="injurySetback", title=title, body=body, related_ids=related(ctx.player_id))


INJURY_COMEBACK = Template(
    id="injuryComeback",
    name="Injury Comeback Trail",
    can_trigger=lambda s: len(s.players) >= 3,
    init_context=InjuryContext.build,
    stages=(
        Stage(week_delay=0, generate=_injury_news),
        Stage(
            week_delay=4,
            generate=_injury_rehab,
            choices=(
                Choice("Maintain your rating: they'll recover", "injuryOptimistic"),
                Choice("Downgrade your assessment", "injuryDowngrade"),
            ),
        ),
        Stage(week_delay=4, generate=_injury_outcome),
    ),
)


# ── 7. Contact Double-Cross ─────────────────────────────────────


@dataclass(frozen=True)
class ContactContext(StoryContext):
    contact_id: str = ""
    contact_name: str = "a contact"

    @classmethod
    def build(cls, snapshot: WorldSnapshot, rng: RNG) -> ContactContext:
        contact_id, contact_name = pick_contact(snapshot, rng)
        return cls(contact_id=contact_id, contact_name=contact_name)


def _betrayal_signs(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = ContactContext.of(instance)
    return EventDraft(
        type="contactBetrayal",
        title="Suspicious Contact Behaviour",
        body=(
            f"{ctx.contact_name} has been uncharacteristically evasive lately. Two pieces of "
            "intelligence they provided last month turned out to be inaccurate, and they've been "
            "seen meeting with a rival scout. This could be nothing, or it could be the beginning "
            "of a betrayal."
        ),
        related_ids=related(ctx.contact_id),
    )


def _betrayal_outcome(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = ContactContext.of(instance)
    confronted = instance.choice_at(0) == 0
    if confronted:
        if rng.chance(0.4):
            title = "False Alarm: Contact Loyal"
            body = (
                f"The confrontation cleared the air. {ctx.contact_name} had a credible "
                "explanation: they'd been working a separate deal that required discretion. The "
                "inaccurate intelligence was genuine error, not deception. The relationship has "
                "survived, possibly even strengthened by your directness."
            )
        else:
            title = "Betrayal Confirmed"
            body = (
                f"The confrontation revealed the truth. {ctx.contact_name} admitted to sharing "
                "your intelligence with a rival in exchange for payment. The relationship is "
                "severed. Word of your zero-tolerance approach to betrayal is spreading through "
                "the network, which has its own value."
            )
    elif rng.chance(0.6):
        title = "Contact Caught Red-Handed"
        body = (
            f"The test worked perfectly. The false intel you planted with {ctx.contact_name} "
            "surfaced in a rival scout's report within days. The evidence is undeniable. You've "
            "identified a leak in your network and can now act with certainty."
        )
    else:
        title = "Test Inconclusive"
        body = (
            f"The false intel you provided to {ctx.contact_name} didn't surface anywhere. Either "
            "they're clean, or they're sophisticated enough to recognise a test. The uncertainty "
            "remains, but you've learned something about their operational awareness either way."
        )
    return EventDraft(
        type="contactBetrayal",
        title=title,
        body=body,
        related_ids=related(ctx.contact_id),
        escalation_level=0 if confronted else 1,
    )


CONTACT_BETRAYAL = Template(
    id="contactBetrayal",
    name="Contact Double-Cross",
    can_trigger=lambda s: len(s.contacts) >= 2,
    init_context=ContactContext.build,
    stages=(
        Stage(
            week_delay=0,
            generate=_betrayal_signs,
            choices=(
                Choice("Confront them directly", "betrayalConfront"),
                Choice("Feed them false intel as a test", "betrayalTest"),
            ),
        ),
        Stage(week_delay=3, escalation_level=1, generate=_betrayal_outcome),
    ),
)


# ── 8. Scouting Scandal ─────────────────────────────────────────

_OUTLETS = ["The Athletic", "The Guardian", "Sky Sports", "BBC Sport", "L'Equipe"]


@dataclass(frozen=True)
class ScandalContext(StoryContext):
    outlet: str = "the press"

    @classmethod
    def build(cls, snapshot: WorldSnapshot, rng: RNG) -> ScandalContext:
        return cls(outlet=rng.pick(_OUTLETS))


def _scandal_accusation(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = ScandalContext.of(instance)
    return EventDraft(
        type="youthAcademyScandal",
        title="Scandal Accusation",
        body=(
            f"{ctx.outlet} is preparing to run a story alleging irregularities in scouting "
            "practices at your level. Your name hasn't been mentioned directly, but the "
            "investigation covers methods and networks that overlap with your own work. This "
            "could be a career-defining moment."
        ),
    )


def _scandal_deepens(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = ScandalContext.of(instance)
    if instance.choice_at(0) == 0:
        body = (
            f"Your cooperation has been noted. {ctx.outlet}'s journalists have acknowledged your "
            "transparency. However, the investigation has uncovered practices by others in your "
            "network that may reflect on you by association. The story runs next week."
        )
    else:
        body = (
            f"Your legal counsel has been effective in limiting exposure, but {ctx.outlet} has "
            "continued investigating. The story is going ahead regardless. The legal posture may "
            "have protected you, or it may have made you look like you have something to hide."
        )
    return EventDraft(type="youthAcademyScandal", title="Investigation Deepens", body=body)


def _scandal_verdict(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = ScandalContext.of(instance)
    if rng.chance(0.75 if instance.choice_at(0) == 0 else 0.5):
        title = "Vindicated: Name Cleared"
        body = (
            f"The story ran and you emerged clean. {ctx.outlet}'s investigation focused on "
            "others, and your cooperation (or distance) kept your reputation intact. The ordeal "
            "is over, and if anything, your standing has improved. Survival in a scandal has its "
            "own currency."
        )
    else:
        title = "Reputation Damaged"
        body = (
            f"The {ctx.outlet} story mentioned your name in an unflattering context. While no "
            "wrongdoing was established, the association has damaged your reputation. "
            "Rebuilding trust will take time and demonstrable integrity in your future work."
        )
    return EventDraft(type="youthAcademyScandal", title=title, body=body)


SCOUTING_SCANDAL = Template(
    id="scoutingScandal",
    name="Scouting Scandal",
    can_trigger=lambda s: s.scout.reputation >= 25 and len(s.report_ids) >= 3,
    init_context=ScandalContext.build,
    stages=(
        Stage(
            week_delay=0,
            escalation_level=1,
            generate=_scandal_accusation,
            choices=(
                Choice("Cooperate fully with the investigation", "scandalCooperate"),
                Choice("Seek legal counsel immediately", "scandalLegal"),
            ),
        ),
        Stage(week_delay=3, escalation_level=2, generate=_scandal_deepens),
        Stage(week_delay=2, generate=_scandal_verdict),
    ),
)


# ── 9. Manager Disagreement ─────────────────────────────────────

_MANAGER_FIRST_NAMES = ["Thomas", "Antonio", "Jurgen", "Pep", "Erik", "Unai"]
_MANAGER_LAST_NAMES = ["Walker", "Rossi", "Fischer", "Garcia", "Lindqvist", "Santos"]


@dataclass(frozen=True)
class ManagerContext(StoryContext):
    club_id: str = ""
    club_name: str = "your club"
    manager_name: str = "the manager"

    @classmethod
    def build(cls, snapshot: WorldSnapshot, rng: RNG) -> ManagerContext:
        club_id, club_name = own_club(snapshot)
        return cls(
            club_id=club_id,
            club_name=club_name,
            manager_name=invented_name(rng, _MANAGER_FIRST_NAMES, _MANAGER_LAST_NAMES),
        )


def _fallout_start(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = ManagerContext.of(instance)
    return EventDraft(
        type="managerSacked",
        title="Disagreement With Manager",
        body=(
            f"{ctx.manager_name} at {ctx.club_name} has publicly dismissed your last two player "
            "recommendations. In a staff meeting, they questioned whether the scouting "
            'department "understands what the first team actually needs." The criticism stung, '
            "and it was delivered in front of colleagues."
        ),
        related_ids=related(ctx.club_id),
    )


def _fallout_tension(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = ManagerContext.of(instance)
    return EventDraft(
        type="managerSacked",
        title="Tension Escalates",
        body=(
            f"The tension between you and {ctx.manager_name} has become visible to the entire "
            "department. Two of your reports were returned unread. Meanwhile, the manager has "
            "brought in their own scout from a previous club. The political implications are "
            "clear."
        ),
        related_ids=related(ctx.club_id),
    )


def _fallout_outcome(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = ManagerContext.of(instance)
    choice = instance.choice_at(1)
    if choice == 0:
        if rng.chance(0.6):
            title = "Reconciliation"
            body = (
                f"The private meeting cleared the air. {ctx.manager_name} acknowledged they'd been "
                "under pressure and the criticism of your work was unfair. A working "
                "understanding has been restored."
            )
        else:
            title = "Meeting Makes It Worse"
            body = (
                f"The meeting escalated into an argument. {ctx.manager_name} doubled down on their "
                "criticism. The relationship may be beyond repair while this manager remains at "
                "the club."
            )
    elif choice == 1:
        if rng.chance(0.5):
            title = "Director Backs You"
            body = (
                "The sporting director listened to both sides and came down firmly in your "
                f"corner. {ctx.manager_name} has been told to respect the scouting process. A "
                "political victory, though the personal relationship may never fully recover."
            )
        else:
            title = "Director Sides With Manager"
            body = (
                f"The sporting director sided with {ctx.manager_name}. Escalating the dispute "
                "proved to be a miscalculation. Your position at the club has weakened."
            )
    elif rng.chance(0.55):
        title = "Results Speak Louder"
        body = (
            f"Your latest recommendation was a demonstrable success. Even {ctx.manager_name} had "
            "to acknowledge the quality of the find. Actions over words remain the most "
            "effective form of argument."
        )
    else:
        title = "Proving Ground Insufficient"
        body = (
            "Despite your best efforts, the recent recommendations haven't produced the standout "
            f"result you needed. {ctx.manager_name}'s position has been reinforced. You'll need "
            "to find another way to rebuild your influence at the club."
        )
    return EventDraft(type="managerSacked", title=title, body=body, related_ids=related(ctx.club_id))


MANAGER_FALLOUT = Template(
    id="managerFallout",
    name="Manager Disagreement",
    can_trigger=lambda s: s.scout.current_club_id is not None and len(s.manager_ids) >= 1,
    init_context=ManagerContext.build,
    stages=(
        Stage(week_delay=0, generate=_fallout_start),
        Stage(
            week_delay=3,
            escalation_level=1,
            generate=_fallout_tension,
            choices=(
                Choice("Request a private meeting", "falloutMeet"),
                Choice("Go directly to the sporting director", "falloutEscalate"),
                Choice("Prove your worth through results", "falloutResults"),
            ),
        ),
        Stage(week_delay=4, generate=_fallout_outcome),
    ),
)


# ── 10. Youth Breakthrough ──────────────────────────────────────


@dataclass(frozen=True)
class YouthContext(StoryContext):
    player_id: str = ""
    player_name: str = "a youth prospect"
    club_id: str = ""
    club_name: str = "a rival club"

    @classmethod
    def build(cls, snapshot: WorldSnapshot, rng: RNG) -> YouthContext:
        player_id, player_name = pick_player(
            snapshot, rng, where=lambda p: p.age <= 20, fallback="a youth prospect"
        )
        club_id, club_name = pick_club(snapshot, rng)
        return cls(player_id=player_id, player_name=player_name, club_id=club_id, club_name=club_name)


def _youth_promise(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = YouthContext.of(instance)
    return EventDraft(
        type="debutBrilliance",
        title="Youth Player Shows Promise",
        body=(
            f"{ctx.player_name} has been turning heads in {ctx.club_name}'s youth setup. Two "
            "consecutive man-of-the-match performances in the youth league have people talking. "
            "At this stage it's potential rather than proof, but the raw materials are clearly "
            "there."
        ),
        related_ids=related(ctx.player_id, ctx.club_id),
    )


def _youth_debut(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = YouthContext.of(instance)
    return EventDraft(
        type="debutBrilliance",
        title="Breakthrough Match",
        body=(
            f"{ctx.player_name} was handed a surprise first-team debut for {ctx.club_name} and "
            "didn't disappoint. A composed performance well beyond their years has generated "
            "significant excitement. Multiple clubs are now making enquiries. Your early "
            "awareness of this talent gives you an advantage."
        ),
        related_ids=related(ctx.player_id, ctx.club_id),
    )


def _youth_outcome(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = YouthContext.of(instance)
    reported_early = instance.choice_at(1) == 0
    if rng.chance(0.5):
        title = "Star in the Making"
        if reported_early:
            body = (
                f"Your early report on {ctx.player_name} has proved prescient. The player has "
                f"cemented a first-team place at {ctx.club_name} and is being talked about as one "
                "of the most exciting young talents in the league. Your early call looks "
                "increasingly impressive."
            )
        else:
            body = (
                f"{ctx.player_name} has established themselves in {ctx.club_name}'s first team. "
                "You waited for more data and the picture is now clear: genuine star quality. "
                "Other scouts got their reports in first, but you now have the most complete "
                "assessment available."
            )
    else:
        title = "Youth Talent Fades"
        if reported_early:
            body = (
                f"{ctx.player_name}'s early promise has not been sustained. After the debut, "
                "subsequent performances have been underwhelming. Your early report may have been "
                "premature; the sample size was always thin. A reminder of the volatility of "
                "youth assessment."
            )
        else:
            body = (
                f"Your caution was warranted. {ctx.player_name} has struggled to build on the "
                "breakthrough performance. The player has been returned to the youth setup for "
                "further development. Patience in scouting is never wasted."
            )
    return EventDraft(
        type="debutBrilliance",
        title=title,
        body=body,
        related_ids=related(ctx.player_id, ctx.club_id),
    )


YOUTH_BREAKTHROUGH = Template(
    id="youthBreakthrough",
    name="Youth Breakthrough",
    can_trigger=lambda s: count_players(s, lambda p: p.age <= 20) >= 1,
    init_context=YouthContext.build,
    stages=(
        Stage(week_delay=0, generate=_youth_promise),
        Stage(
            week_delay=3,
            generate=_youth_debut,
            choices=(
                Choice("File a comprehensive report now", "youthReportNow"),
                Choice("Wait for more first-team data", "youthWait"),
            ),
        ),
        Stage(week_delay=4, generate=_youth_outcome),
    ),
)


# ── Registry and effects ────────────────────────────────────────

CHAIN_TEMPLATES = TemplateRegistry(
    [
        DRESSING_ROOM_CONFLICT,
        TRANSFER_SAGA,
        WONDERKID_PRESSURE,
        BOARD_ULTIMATUM,
        RIVAL_POACHING,
        INJURY_COMEBACK,
        CONTACT_BETRAYAL,
        SCOUTING_SCANDAL,
        MANAGER_FALLOUT,
        YOUTH_BREAKTHROUGH,
    ]
)


def escalation_effects(registry: TemplateRegistry) -> EffectTable:
    """Derive one effect per choice from its stage's escalation level.

    The first option is the bold one (full reputation, some fatigue), the
    second is moderate (half reputation), anything after that is cautious
    (no reputation, a little rest).
    """
    effects: dict[str, Effect] = {}
    for template in registry:
        for stage in template.stages:
            base = (stage.escalation_level + 1) * 2
            for index, choice in enumerate(stage.choices):
                if index == 0:
                    effects[choice.effect] = Effect(reputation=base, fatigue=3)
                elif index == 1:
                    effects[choice.effect] = Effect(reputation=base // 2)
                else:
                    effects[choice.effect] = Effect(fatigue=-2)
    return EffectTable(effects)


CHAIN_EFFECTS = escalation_effects(CHAIN_TEMPLATES)
