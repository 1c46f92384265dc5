"""Storyline catalog: long-form personal arcs for the scout.

Storylines run on the 38-week season calendar, at most two at a time, with
a 5% weekly chance of a new one starting.
"""

from __future__ import annotations

from dataclasses import dataclass

from narrative.effects import Effect, EffectTable, Outcome
from narrative.models import Choice, EventDraft, Instance, Stage, StoryContext, Template
from narrative.registry import TemplateRegistry
from narrative.rng import RNG
from world.models import WorldSnapshot

from .helpers import invented_name, own_club, pick_contact, pick_player, related


def _gone(snapshot: WorldSnapshot, player_id: str) -> bool:
    """True when a player the story is about has left the world."""
    return bool(player_id) and player_id not in snapshot.players


# ── 1. The Wonderkid Chase (3 stages, 6 weeks) ──────────────────


@dataclass(frozen=True)
class WonderkidChaseContext(StoryContext):
    contact_id: str = ""
    contact_name: str = "a trusted source"
    wonderkid_id: str = ""
    wonderkid_name: str = "an exceptional young talent"

    @classmethod
    def build(cls, snapshot: WorldSnapshot, rng: RNG) -> WonderkidChaseContext:
        contact_id, contact_name = pick_contact(snapshot, rng, fallback="a trusted source")
        wonderkid_id, wonderkid_name = pick_player(
            snapshot,
            rng,
            where=lambda p: p.current_ability < 120 and p.age <= 22,
            fallback="an exceptional young talent",
        )
        return cls(
            contact_id=contact_id,
            contact_name=contact_name,
            wonderkid_id=wonderkid_id,
            wonderkid_name=wonderkid_name,
        )


def _chase_whisper(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = WonderkidChaseContext.of(instance)
    return EventDraft(
        type="exclusiveTip",
        title="Whisper of a Hidden Wonderkid",
        body=(
            f"{ctx.contact_name} has been unusually secretive, but over coffee they finally "
            f"revealed the name: {ctx.wonderkid_name}. Barely sixteen, playing in the lower "
            "amateur pyramid, and apparently doing things with a football that shouldn't be "
            'possible at that age. "You need to see this kid before the word gets out," they '
            "said. The window to act is narrow."
        ),
        related_ids=related(ctx.contact_id),
    )


def _chase_pressure(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft | None:
    ctx = WonderkidChaseContext.of(instance)
    if _gone(snapshot, ctx.wonderkid_id):
        return None
    return EventDraft(
        type="wonderkidPressure",
        title="The Wonderkid Attracting Attention",
        body=(
            f"{ctx.wonderkid_name}'s performances have been turning heads. You've gathered "
            "enough data to file a compelling report, but the word is spreading: two other "
            "scouts were spotted at last weekend's fixture. Submitting now locks in your claim. "
            "Waiting another week risks being beaten to the story, but more evidence would make "
            "the report stronger."
        ),
        related_ids=related(ctx.wonderkid_id),
    )


def _chase_outcome(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = WonderkidChaseContext.of(instance)
    name = ctx.wonderkid_name
    if ctx.player_choice in (None, "wonderkidRush"):
        if rng.chance(0.6):
            label = "+8 Reputation"
            body = (
                f"Moving quickly paid off. Your report on {name} reached the right desk before "
                "anyone else's. The club's technical director called it \"the most compelling "
                'piece of early-stage scouting I\'ve read this season." Reputation rises accordingly.'
            )
        else:
            label = "-3 Reputation"
            body = (
                "Despite your speed, a rival scout somehow got there first. Their report landed "
                "twenty-four hours before yours. The club acknowledged your work but the credit, "
                "and the discovery bonus, goes elsewhere. A painful lesson in the margins of this game."
            )
    elif rng.chance(0.4):
        label = "+12 Reputation"
        body = (
            f"Patience justified. The additional observations gave your report on {name} a depth "
            "and precision that no rushed competitor could match. The club has moved decisively "
            "on your recommendation. Your methodical approach is being praised."
        )
    else:
        label = "-5 Reputation"
        body = (
            "The extra week cost you the discovery. Another scout submitted their report while "
            f"you were still refining yours. {name} is already on a rival club's shortlist. The "
            "data you gathered is excellent, but it arrived too late to matter."
        )
    return EventDraft(
        type="hiddenGemVindication",
        title=f"Wonderkid Chase: {label}",
        body=body,
        related_ids=related(ctx.wonderkid_id),
    )


WONDERKID_CHASE = Template(
    id="wonderkidChase",
    name="The Wonderkid Chase",
    can_trigger=lambda s: s.scout.reputation > 30 and len(s.contacts) >= 1,
    init_context=WonderkidChaseContext.build,
    stages=(
        Stage(week_delay=0, generate=_chase_whisper),
        Stage(
            week_delay=3,
            generate=_chase_pressure,
            prerequisite=lambda s, i: s.scout.reputation > 25,
            choices=(
                Choice("Rush a report now", "wonderkidRush"),
                Choice("Wait for more data", "wonderkidWait"),
            ),
        ),
        Stage(week_delay=3, generate=_chase_outcome),
    ),
)


# ── 2. The Corrupt Agent (3 stages, 8 weeks) ────────────────────


@dataclass(frozen=True)
class CorruptAgentContext(StoryContext):
    agent_id: str = ""
    agent_name: str = "an agent"

    @classmethod
    def build(cls, snapshot: WorldSnapshot, rng: RNG) -> CorruptAgentContext:
        agent_id, agent_name = pick_contact(snapshot, rng, contact_type="agent", fallback="an agent")
        return cls(agent_id=agent_id, agent_name=agent_name)


def _agent_offer(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = CorruptAgentContext.of(instance)
    return EventDraft(
        type="agentDeception",
        title="Unusually Good Deal on Player Access",
        body=(
            f"{ctx.agent_name} has been offering extraordinary access to clients, more than any "
            "other agent in your network, with better terms and fewer conditions. The deals are "
            "suspiciously good. In this business, that usually means someone somewhere is paying "
            "a hidden price. Worth monitoring before you rely too heavily on the relationship."
        ),
        related_ids=related(ctx.agent_id),
    )


def _agent_evidence(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = CorruptAgentContext.of(instance)
    return EventDraft(
        type="agentDoubleDealing",
        title="Agent Inflating Player Statistics",
        body=(
            f"Your own investigation has confirmed the suspicion. {ctx.agent_name} has been "
            "systematically overstating client performance metrics: fabricating game-time "
            "numbers, cherry-picking samples, and in two cases altering third-party data. Clubs "
            "that acted on those numbers have been defrauded. What you do with this information "
            "defines your character in this industry."
        ),
        related_ids=related(ctx.agent_id),
    )


def _agent_fallout(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = CorruptAgentContext.of(instance)
    if ctx.player_choice in (None, "agentExpose"):
        title = "Agent Exposed: Reputation Gained"
        body = (
            f"The exposure of {ctx.agent_name} has been swift and unambiguous. Governing bodies "
            "have opened a formal investigation and three clubs have already severed ties with "
            "the agent. Your reputation for integrity, rare in a business where everyone knows "
            "everyone, has risen measurably. The contact is gone, but you gained something more "
            "valuable."
        )
    elif rng.chance(0.3):
        title = "Agent Leverage Exposed"
        body = (
            "The arrangement worked briefly, with intel packages obtained at no cost. But word "
            "got out. Colleagues who knew about the inflated stats and saw you continue working "
            "with the agent have drawn their own conclusions. Your reputation has taken a quiet "
            "but real hit."
        )
    else:
        title = "Agent Intel Secured"
        body = (
            "The leverage has paid off quietly. Two free intelligence packages obtained, the "
            "agent kept compliant, and no one the wiser. Whether the means justify the ends is a "
            "question only you can answer. For now, the professional calculus is in the black."
        )
    return EventDraft(type="journalistExpose", title=title, body=body, related_ids=related(ctx.agent_id))


CORRUPT_AGENT = Template(
    id="corruptAgent",
    name="The Corrupt Agent",
    can_trigger=lambda s: len(s.contacts) >= 1 and s.scout.reputation > 20,
    init_context=CorruptAgentContext.build,
    stages=(
        Stage(week_delay=0, generate=_agent_offer),
        Stage(
            week_delay=4,
            generate=_agent_evidence,
            choices=(
                Choice("Expose publicly", "agentExpose"),
                Choice("Leverage for intel", "agentLeverage"),
            ),
        ),
        Stage(week_delay=4, generate=_agent_fallout),
    ),
)


# ── 3. The Prodigal Return (2 stages, 4 weeks) ──────────────────


@dataclass(frozen=True)
class ProdigalReturnContext(StoryContext):
    player_id: str = ""
    player_name: str = "a veteran player"

    @classmethod
    def build(cls, snapshot: WorldSnapshot, rng: RNG) -> ProdigalReturnContext:
        player_id, player_name = pick_player(snapshot, rng, where=lambda p: 27 <= p.age <= 35, fallback="")
        if not player_id and snapshot.players:
            veteran = next(iter(snapshot.players.values()))
            player_id, player_name = veteran.id, veteran.full_name
        return cls(player_id=player_id, player_name=player_name or "a veteran player")


def _prodigal_arrival(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = ProdigalReturnContext.of(instance)
    return EventDraft(
        type="lateBloomingSurprise",
        title="The Prodigal Return",
        body=(
            f"Once the talk of every scout in the country, {ctx.player_name} has returned to a "
            "lower-league club after years playing abroad. The stories from overseas are mixed: "
            '"inconsistent form but moments of brilliance," according to one source. At their age '
            "and level, it's either a player with enough left in the tank to justify a look, or a "
            "name coasting on past glories. Your eye will tell you which."
        ),
        related_ids=related(ctx.player_id),
    )


def _prodigal_verdict(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft | None:
    ctx = ProdigalReturnContext.of(instance)
    if _gone(snapshot, ctx.player_id):
        return None
    return EventDraft(
        type="reportCitedInBoardMeeting",
        title="Time for Your Verdict",
        body=(
            f"After four weeks of observations, {ctx.player_name} remains difficult to read. "
            "There are games where they look a level above everyone on the pitch, and others "
            "where the pace has clearly gone and the decision-making is a step slow. Multiple "
            "clubs are asking for assessments. Your professional judgement, and your willingness "
            "to back it, is what separates a good scout from an equivocating one. What's your call?"
        ),
        related_ids=related(ctx.player_id),
    )


PRODIGAL_RETURN = Template(
    id="prodigalReturn",
    name="The Prodigal Return",
    can_trigger=lambda s: s.current_season >= 2 and len(s.report_ids) >= 1,
    init_context=ProdigalReturnContext.build,
    stages=(
        Stage(week_delay=0, generate=_prodigal_arrival),
        Stage(
            week_delay=4,
            generate=_prodigal_verdict,
            choices=(
                Choice("Recommend - still has it", "prodigalRecommend"),
                Choice("Pass - too much decline", "prodigalPass"),
            ),
        ),
    ),
)


# ── 4. Board Power Struggle (4 stages, 12 weeks) ────────────────

_BOARD_FIRST_NAMES = ["Marcus", "Elena", "David", "Priya", "Henrik", "Lucia"]
_BOARD_LAST_NAMES = ["Vance", "Kowalski", "Osei", "Sharma", "Bergman", "Reyes"]


@dataclass(frozen=True)
class BoardStruggleContext(StoryContext):
    club_id: str = ""
    club_name: str = "your club"
    board_member_name: str = ""

    @classmethod
    def build(cls, snapshot: WorldSnapshot, rng: RNG) -> BoardStruggleContext:
        club_id, club_name = own_club(snapshot)
        return cls(
            club_id=club_id,
            club_name=club_name,
            board_member_name=invented_name(rng, _BOARD_FIRST_NAMES, _BOARD_LAST_NAMES),
        )


def _employed(snapshot: WorldSnapshot, instance: Instance) -> bool:
    return snapshot.scout.current_club_id is not None


def _board_memo(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = BoardStruggleContext.of(instance)
    return EventDraft(
        type="boardroomCoup",
        title="New Board Member Challenges Scouting Methodology",
        body=(
            f"A newly appointed board member at {ctx.club_name}, {ctx.board_member_name}, has "
            "wasted no time making their views known. In an internal memo circulated this week "
            'they questioned "the qualitative nature of the current scouting operation" and '
            'called for "data-led, measurable recruitment criteria." The scouting department is '
            "being talked about as a line item rather than a function. Watch this space."
        ),
        related_ids=related(ctx.club_id),
    )


def _board_review(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = BoardStruggleContext.of(instance)
    return EventDraft(
        type="reportCitedInBoardMeeting",
        title="Justify Your Reports to the Board",
        body=(
            f"{ctx.board_member_name} has requested a formal review of the scouting department's "
            "methodology. You've been asked to present your last six months of work to a board "
            "sub-committee. It's an uncomfortable request, but also an opportunity: handled well, "
            "it could silence the critic before the criticism becomes structural. The "
            "presentation is next week."
        ),
        related_ids=related(ctx.club_id),
    )


def _board_politics(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = BoardStruggleContext.of(instance)
    return EventDraft(
        type="scoutingDeptRestructure",
        title="Political Maneuvering",
        body=(
            f"The political situation at {ctx.club_name} has clarified. {ctx.board_member_name} "
            "has the support of two other investors. The existing chairman has the loyalty of the "
            "football operations side. Neither faction is asking you directly, but the message is "
            "being sent through intermediaries: where do your loyalties lie? This will be "
            "remembered, whatever the outcome."
        ),
        related_ids=related(ctx.club_id),
    )


_BOARD_OUTCOMES = {
    # (new board wins, choice) -> (title, body template)
    (True, "boardAlignNew"): (
        "New Board Wins: Alignment Rewarded (+5 Rep)",
        "{member}'s faction has prevailed. The existing chairman tendered their resignation this "
        "morning. Your early alignment with the incoming regime has been noticed; you've been "
        'described as "one of the pragmatic professionals who understood where this was going." '
        "Reputation and trust at the club have risen.",
    ),
    (True, "boardAlignOld"): (
        "New Board Wins: Loyalty to Old Structure Penalised (-3 Rep)",
        "{member}'s faction has prevailed. The chairman is gone and the new regime is installing "
        "its own people. Your association with the outgoing structure has not been forgotten. "
        "You'll need to work harder to prove your value to the new board.",
    ),
    (True, None): (
        "New Board Wins: Neutral Position Holds",
        "{member} has taken control. Your neutrality kept you out of the firing line, neither "
        "rewarded nor punished. A cautious choice that preserved your position. The new regime "
        "is an unknown quantity, but you have no enemies there.",
    ),
    (False, "boardAlignOld"): (
        "Existing Board Prevails: Loyalty Rewarded (+5 Rep)",
        "The existing structure survived. The chairman's faction mobilised support among the "
        "majority shareholders and {member}'s initiative has been rebuffed. Your loyalty to the "
        "existing structure has been noted at the highest level. Reputation rises.",
    ),
    (False, "boardAlignNew"): (
        "Existing Board Prevails: Alignment Penalised (-3 Rep)",
        "The existing structure survived and {member} has been sidelined. Your alignment with "
        "the losing faction has been noted. The chairman's inner circle is keeping a careful "
        "distance. You'll need to rebuild trust over time.",
    ),
    (False, None): (
        "Existing Board Prevails: Neutral Position Holds",
        "The existing board held on. Your neutrality proved wise; both sides had reasons to "
        "respect your non-involvement. The chairman specifically mentioned your \"professional "
        'focus" in a private conversation. You emerge with your position intact.',
    ),
}


def _board_resolution(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = BoardStruggleContext.of(instance)
    new_board_wins = rng.chance(0.6)
    choice = ctx.player_choice if ctx.player_choice in ("boardAlignNew", "boardAlignOld") else None
    title, body = _BOARD_OUTCOMES[(new_board_wins, choice)]
    return EventDraft(
        type="boardroomCoup",
        title=title,
        body=body.format(member=ctx.board_member_name),
        related_ids=related(ctx.club_id),
    )


BOARD_POWER_STRUGGLE = Template(
    id="boardPowerStruggle",
    name="Board Power Struggle",
    can_trigger=lambda s: s.scout.career_tier >= 3 and s.scout.current_club_id is not None,
    init_context=BoardStruggleContext.build,
    stages=(
        Stage(
            week_delay=0,
            generate=_board_memo,
            prerequisite=lambda s, i: s.scout.current_club_id is not None and s.scout.career_tier >= 3,
        ),
        Stage(week_delay=4, generate=_board_review, prerequisite=_employed),
        Stage(
            week_delay=4,
            generate=_board_politics,
            prerequisite=_employed,
            choices=(
                Choice("Align with the new board member", "boardAlignNew"),
                Choice("Support the existing structure", "boardAlignOld"),
                Choice("Stay strictly neutral", "boardNeutral"),
            ),
        ),
        Stage(week_delay=4, generate=_board_resolution),
    ),
)


# ── 5. The International Discovery (3 stages, 10 weeks) ─────────


@dataclass(frozen=True)
class InternationalDiscoveryContext(StoryContext):
    contact_id: str = ""
    contact_name: str = "a contact overseas"
    country: str = ""
    player_id: str = ""
    player_name: str = "a young talent"

    @classmethod
    def build(cls, snapshot: WorldSnapshot, rng: RNG) -> InternationalDiscoveryContext:
        contact_id, contact_name = pick_contact(snapshot, rng, fallback="a contact overseas")
        foreign = list(snapshot.countries[1:]) or list(snapshot.countries[:1])
        country = rng.pick(foreign) if foreign else "abroad"
        player_id, player_name = pick_player(
            snapshot,
            rng,
            where=lambda p: p.age <= 23 and p.current_ability < 130,
            fallback="a young talent",
        )
        return cls(
            contact_id=contact_id,
            contact_name=contact_name,
            country=country[:1].upper() + country[1:],
            player_id=player_id,
            player_name=player_name,
        )


def _intl_tip(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = InternationalDiscoveryContext.of(instance)
    return EventDraft(
        type="internationalTournament",
        title="Unknown Talent in a Remote League",
        body=(
            f"{ctx.contact_name} has mentioned a name you've never encountered: {ctx.player_name}, "
            f'playing in a semi-professional setup in {ctx.country}. "I\'ve been watching them for '
            "three months and I've never seen anything like it at this level,\" they said. The "
            "league isn't on any major radar. If this is genuine, you'd have the picture entirely "
            "to yourself."
        ),
        related_ids=related(ctx.contact_id, ctx.player_id),
    )


def _intl_trip(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = InternationalDiscoveryContext.of(instance)
    return EventDraft(
        type="exclusiveAccess",
        title="The Scouting Trip",
        body=(
            f"You've made the journey to {ctx.country}. The facilities are humble, the travel was "
            "long, and the local football is rawer than what you're used to. But "
            f"{ctx.player_name} is immediately visible, a presence on the pitch that stands out "
            "even in this context. You spend three days observing, taking notes, filming where "
            "permitted. Your notebook is filling with things that could justify the trip many "
            "times over."
        ),
        related_ids=related(ctx.player_id),
    )


def _intl_decision(instance: Instance, snapshot: WorldSnapshot, rng: RNG) -> EventDraft:
    ctx = InternationalDiscoveryContext.of(instance)
    return EventDraft(
        type="networkExpansion",
        title="The International Placement Decision",
        body=(
            f"Your assessment of {ctx.player_name} is complete. The talent is genuine, probably "
            "worth two or three tiers higher than their current environment. Now comes the harder "
            "question: who do you recommend them to? Your own club would get the benefit, but a "
            "bigger club could transform the player's career. Or you could hold the information "
            "and wait for a clearer opportunity."
        ),
        related_ids=related(ctx.player_id),
    )


INTERNATIONAL_DISCOVERY = Template(
    id="internationalDiscovery",
    name="The International Discovery",
    can_trigger=lambda s: len(s.countries) >= 2 and s.scout.reputation > 40,
    init_context=InternationalDiscoveryContext.build,
    stages=(
        Stage(week_delay=0, generate=_intl_tip),
        Stage(week_delay=5, generate=_intl_trip, prerequisite=lambda s, i: len(s.countries) >= 2),
        Stage(
            week_delay=5,
            generate=_intl_decision,
            choices=(
                Choice("Recommend to your club", "intlRecommendOwn"),
                Choice("Recommend to a bigger club", "intlRecommendBig"),
                Choice("Hold off for now", "intlHoldOff"),
            ),
        ),
    ),
)


# ── Registry and effects ────────────────────────────────────────

STORYLINE_TEMPLATES = TemplateRegistry(
    [
        WONDERKID_CHASE,
        CORRUPT_AGENT,
        PRODIGAL_RETURN,
        BOARD_POWER_STRUGGLE,
        INTERNATIONAL_DISCOVERY,
    ]
)

_BOARD_REGISTERED = "Your position in the board struggle has been registered."

STORYLINE_EFFECTS = EffectTable(
    {
        "wonderkidRush": Effect(fatigue=5, message="You rush to compile your report. The pressure is on."),
        "wonderkidWait": Effect(message="You decide to gather more data. Patience is a virtue in this business."),
        "agentExpose": Effect(reputation=5, message="You report the agent's conduct. The industry will take note."),
        "agentLeverage": Effect(
            message="You quietly leverage the information. Two free intel packages secured.",
            chance=0.3,
            alternate=Outcome(
                reputation=-3,
                message="The leverage arrangement has been discovered. Your reputation suffers.",
            ),
        ),
        # chance = the veteran still performs
        "prodigalRecommend": Effect(
            reputation=-4,
            message="The veteran's decline accelerated. Your recommendation didn't land well.",
            chance=0.5,
            alternate=Outcome(
                reputation=6,
                message="Your recommendation was correct: the veteran still has it. Reputation rises.",
            ),
        ),
        "prodigalPass": Effect(
            reputation=6,
            message="Your caution was validated: the veteran struggled badly. Sound judgement.",
            chance=0.5,
            alternate=Outcome(
                reputation=-4,
                message="The veteran proved you wrong with a string of excellent performances.",
            ),
        ),
        "boardAlignNew": Effect(message=_BOARD_REGISTERED),
        "boardAlignOld": Effect(message=_BOARD_REGISTERED),
        "boardNeutral": Effect(message=_BOARD_REGISTERED),
        "intlRecommendOwn": Effect(
            reputation=4,
            message="You submit the report to your own club. A direct benefit to your standing here.",
        ),
        "intlRecommendBig": Effect(
            reputation=7,
            message="Recommending upward takes courage. Your reputation for selfless scouting grows.",
        ),
        "intlHoldOff": Effect(message="You hold the information. No risk, no reward, for now."),
    }
)
