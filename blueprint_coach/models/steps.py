# blueprint_coach/models/steps.py
"""
Step and stage configuration.

The nine steps are data, not code: every behavior that differs between steps
(minimum length, shape check, parse kind, recovery templates, prompts) is read
from STEPS. Adding or retuning a step means editing this table only.
"""

from dataclasses import dataclass, field
from typing import Literal

from blueprint_coach.models.conversation import Stage
from blueprint_coach.models.handoff import GradeBand, WizardHandoff
from blueprint_coach.parsing.records import ParseKind

ShapeCheck = Literal["conceptual", "question", "actionable", "list", "none"]

STAGE_ORDER: tuple[Stage, ...] = (Stage.IDEATION, Stage.JOURNEY, Stage.DELIVERABLES)

STAGE_PURPOSES: dict[Stage, str] = {
    Stage.IDEATION: "Frame the conceptual foundation: a Big Idea, an Essential Question and a Challenge.",
    Stage.JOURNEY: "Map the learning journey: phases, activities and the resources that sustain them.",
    Stage.DELIVERABLES: "Define evidence of learning: milestones, assessment criteria and public impact.",
}

GRADE_BAND_GUIDANCE: dict[GradeBand, str] = {
    GradeBand.EARLY: "Play-based, concrete experiences in short explore-make-share cycles; share with families.",
    GradeBand.ELEMENTARY: "Hands-on investigators with defined roles; checkpoint charts and school showcases.",
    GradeBand.MIDDLE: "Multi-step inquiry and prototyping with coaching; authentic civic or industry audiences.",
    GradeBand.HIGH: "Student-led research and design with real stakeholders; defend decisions with evidence.",
    GradeBand.HIGHER_ED: "Independent, professional-grade work with partners; publishable or deployable outcomes.",
}

MIN_CHARS_MULTIPLIER: dict[GradeBand, float] = {
    GradeBand.EARLY: 0.5,
    GradeBand.ELEMENTARY: 0.75,
    GradeBand.MIDDLE: 1.0,
    GradeBand.HIGH: 1.0,
    GradeBand.HIGHER_ED: 1.25,
}


@dataclass(frozen=True)
class StepSpec:
    """
    Configuration for one step.

    Attributes:
        key: Stable step key, e.g. "ideation.bigIdea"
        stage: Stage the step belongs to
        label: Human-readable name
        objective: What the educator is producing in this step
        parse_kind: Structured parse kind, or None for free-text steps
        min_chars: Minimum length before grade-band scaling
        shape: Shape check applied to otherwise acceptable input
        recovery_templates: Multiple-choice options offered on rejection;
            formatted with subject, grade, duration and place
        refinement_hint: Shown when input is accepted but could be stronger
        entry_prompt: Question asked when the step is entered
        examples: Example answers, formatted like recovery_templates
    """

    key: str
    stage: Stage
    label: str
    objective: str
    parse_kind: ParseKind | None
    min_chars: int
    shape: ShapeCheck
    recovery_templates: tuple[str, ...]
    refinement_hint: str
    entry_prompt: str
    examples: tuple[str, ...] = field(default_factory=tuple)

    @property
    def structured(self) -> bool:
        return self.parse_kind is not None


STEPS: tuple[StepSpec, ...] = (
    StepSpec(
        key="ideation.bigIdea",
        stage=Stage.IDEATION,
        label="Big Idea",
        objective="A transferable concept that anchors the whole project",
        parse_kind=None,
        min_chars=10,
        shape="conceptual",
        recovery_templates=(
            "{subject} shapes the way our {place} lives and grows",
            "Systems in {subject} depend on each other",
            "Change over time in {subject} reveals what people value",
        ),
        refinement_hint=(
            "Big Ideas work best as a short conceptual statement rather than a task "
            "or a question, e.g. 'Culture shapes cities'."
        ),
        entry_prompt=(
            "Let's start with the Big Idea: the concept about {subject} you want "
            "{grade} students to carry with them long after the project ends."
        ),
        examples=(
            "Culture shapes cities",
            "Energy is never created, only transformed",
            "Stories preserve identity",
        ),
    ),
    StepSpec(
        key="ideation.essentialQuestion",
        stage=Stage.IDEATION,
        label="Essential Question",
        objective="An open-ended question that drives inquiry into the Big Idea",
        parse_kind=None,
        min_chars=15,
        shape="question",
        recovery_templates=(
            "How might {subject} help us understand our {place}?",
            "Why does {subject} matter to the people around us?",
            "What would change if we rethought {subject} in our {place}?",
        ),
        refinement_hint=(
            "Essential Questions are open-ended: start with How, Why or What, and "
            "avoid questions with a yes/no answer."
        ),
        entry_prompt=(
            "Now turn the Big Idea into an Essential Question: an open-ended question "
            "students will investigate over {duration}."
        ),
        examples=(
            "How does culture shape the places we live?",
            "Why do some communities thrive while others struggle?",
            "What makes a solution fair for everyone?",
        ),
    ),
    StepSpec(
        key="ideation.challenge",
        stage=Stage.IDEATION,
        label="Challenge",
        objective="An authentic task students complete to answer the question",
        parse_kind=None,
        min_chars=20,
        shape="actionable",
        recovery_templates=(
            "Create a public exhibit that explains {subject} to our {place}",
            "Design a proposal that uses {subject} to improve our {place}",
            "Build a guide about {subject} for younger students",
        ),
        refinement_hint=(
            "Challenges are actionable: start with a verb like create, design, build "
            "or propose, and name who the work is for."
        ),
        entry_prompt=(
            "What Challenge will {grade} students take on? Describe the real task "
            "they will complete to answer the Essential Question."
        ),
        examples=(
            "Design a walking tour that shows how culture shaped our neighborhood",
            "Propose a plan to reduce waste in the school cafeteria",
            "Build a podcast series interviewing local historians",
        ),
    ),
    StepSpec(
        key="journey.phases",
        stage=Stage.JOURNEY,
        label="Phases",
        objective="The sequence of phases students move through",
        parse_kind=ParseKind.PHASES,
        min_chars=20,
        shape="list",
        recovery_templates=(
            "Phase 1: Launch\nPhase 2: Investigate\nPhase 3: Create\nPhase 4: Share",
            "Phase 1: Discover\nPhase 2: Design\nPhase 3: Present",
            "Phase 1: Research\nPhase 2: Prototype\nPhase 3: Test and showcase",
        ),
        refinement_hint=(
            "List at least two phases, one per line, e.g. 'Phase 1: Launch' with "
            "a few activities under each."
        ),
        entry_prompt=(
            "Let's map the learning journey. What phases will students move through "
            "across {duration}?"
        ),
        examples=(
            "Phase 1: Launch\n- Neighborhood walk\n- Question wall\n"
            "Phase 2: Investigate\n- Interview residents\n"
            "Phase 3: Create\n- Build exhibit",
        ),
    ),
    StepSpec(
        key="journey.activities",
        stage=Stage.JOURNEY,
        label="Activities",
        objective="Concrete learning activities within the phases",
        parse_kind=ParseKind.ACTIVITIES,
        min_chars=20,
        shape="list",
        recovery_templates=(
            "- Interview local experts about {subject}\n- Map examples in our {place}\n- Build a prototype",
            "- Research case studies\n- Collaborate on a design sprint\n- Present to peers",
            "- Field observation journal\n- Small-group analysis\n- Gallery walk feedback",
        ),
        refinement_hint="List at least two activities, ideally one per line with a short description.",
        entry_prompt="What activities will students do in each phase? A short list is perfect.",
        examples=(
            "- Research: compare three neighborhoods using city archives\n"
            "- Interview: talk with two local business owners\n"
            "- Create: sketch exhibit panels in teams",
        ),
    ),
    StepSpec(
        key="journey.resources",
        stage=Stage.JOURNEY,
        label="Resources",
        objective="Experts, texts, tools and places that sustain the work",
        parse_kind=ParseKind.RESOURCES,
        min_chars=10,
        shape="none",
        recovery_templates=(
            "- A local {subject} expert as guest speaker\n- Library articles\n- Shared slide deck tool",
            "- Field trip to a site in our {place}\n- Documentary video\n- Interview guide",
            "- Community partner organization\n- Online data sets\n- Maker-space materials",
        ),
        refinement_hint="Name specific people, texts, tools or places where you can.",
        entry_prompt="Which resources (experts, texts, tools, places) will support students?",
        examples=(
            "- City historian (expert)\n- Neighborhood archive photos\n- Canva for exhibit panels",
        ),
    ),
    StepSpec(
        key="deliverables.milestones",
        stage=Stage.DELIVERABLES,
        label="Milestones",
        objective="Checkpoints that show evidence of progress",
        parse_kind=ParseKind.MILESTONES,
        min_chars=15,
        shape="list",
        recovery_templates=(
            "Week 1: Research plan approved\nWeek 2: Draft reviewed by peers\nWeek 3: Final showcase",
            "- Proposal pitch\n- Prototype check-in\n- Public presentation",
            "- Question wall complete\n- Evidence journal check\n- Exhibit rehearsal",
        ),
        refinement_hint="List at least two milestones, and mention a week where you can.",
        entry_prompt=(
            "What milestones will show progress across {duration}? Week labels help, "
            "e.g. 'Week 2: Draft exhibit'."
        ),
        examples=("Week 1: Research question approved\nWeek 3: Prototype feedback\nWeek 4: Showcase",),
    ),
    StepSpec(
        key="deliverables.rubric",
        stage=Stage.DELIVERABLES,
        label="Rubric",
        objective="Criteria used to assess student work",
        parse_kind=ParseKind.RUBRIC_CRITERIA,
        min_chars=15,
        shape="list",
        recovery_templates=(
            "- Content Understanding\n- Creativity\n- Collaboration\n- Presentation",
            "- Use of evidence (30%)\n- Design quality (40%)\n- Communication (30%)",
            "- Research depth\n- Teamwork\n- Audience impact",
        ),
        refinement_hint="List at least two criteria; weights like (25%) are optional.",
        entry_prompt="How will you assess the work? List the rubric criteria you care about.",
        examples=("- Content Understanding (25%)\n- Creativity (25%)\n- Collaboration (25%)\n- Presentation (25%)",),
    ),
    StepSpec(
        key="deliverables.impact",
        stage=Stage.DELIVERABLES,
        label="Impact",
        objective="How student work reaches an authentic audience",
        parse_kind=ParseKind.IMPACT_DATA,
        min_chars=20,
        shape="none",
        recovery_templates=(
            "Audience: families and community members\nMethod: evening exhibition in our {place}",
            "Audience: local council\nMethod: formal proposal presentation",
            "Audience: younger students\nMethod: interactive workshop they lead",
        ),
        refinement_hint="Name the audience and how students will share their work with them.",
        entry_prompt="Finally, who is the authentic audience, and how will students share their work?",
        examples=("Audience: city council\nMethod: public presentation\nTimeline: final week",),
    ),
)

STEP_INDEX: dict[str, StepSpec] = {spec.key: spec for spec in STEPS}

STEP_KEYS: tuple[str, ...] = tuple(spec.key for spec in STEPS)


def get_step(step_key: str) -> StepSpec:
    """
    Look up a step by key.

    Raises:
        KeyError: If the key is unknown
    """
    try:
        return STEP_INDEX[step_key]
    except KeyError:
        raise KeyError(f"Unknown step '{step_key}'") from None


def steps_for(stage: Stage) -> tuple[StepSpec, ...]:
    return tuple(spec for spec in STEPS if spec.stage is stage)


def next_stage(stage: Stage) -> Stage:
    """Stage after `stage`; COMPLETE after the last stage."""
    if stage is Stage.ONBOARDING:
        return STAGE_ORDER[0]
    if stage is Stage.COMPLETE:
        return Stage.COMPLETE
    position = STAGE_ORDER.index(stage)
    if position + 1 < len(STAGE_ORDER):
        return STAGE_ORDER[position + 1]
    return Stage.COMPLETE


def template_values(handoff: WizardHandoff | None) -> dict[str, str]:
    """Values used to format step templates."""
    if handoff is None:
        return {
            "subject": "the subject",
            "grade": "your",
            "duration": "the project",
            "place": "community",
        }
    return {
        "subject": handoff.subject,
        "grade": handoff.grade_level,
        "duration": handoff.duration,
        "place": handoff.location or "community",
    }


def render(template: str, handoff: WizardHandoff | None) -> str:
    return template.format(**template_values(handoff))
