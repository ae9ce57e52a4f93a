from __future__ import annotations

"""Associated-data table for the four simulation archetypes.

Everything that varies by archetype lives in one record per archetype: the
baseline multipliers, the noise profile, the growth and volatility ranges a
plausible path falls into, the base probability with its trait alignment
bonus, and the narrative templates. Components look the record up once via
`profile_for` instead of keeping their own per-archetype tables.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

from futureself.models.domain import Archetype, MetricName, PatternKind


@dataclass(frozen=True)
class VolatilityProfile:
    """Uniform noise half-width plus a constant drift applied per metric per horizon."""

    base: float
    bias: float


@dataclass(frozen=True)
class TraitAlignment:
    """Probability bonus granted when a Big Five trait exceeds a threshold."""

    trait: str
    threshold: float
    bonus: float


@dataclass(frozen=True)
class NarrativeTemplates:
    """Text templates for one archetype.

    Templates use `str.format` placeholders: `category`, `growth`,
    `growth_desc`, `confidence`, `confidence_level`, `pattern`, and for
    milestone framing `year` and `description`.
    """

    title: str
    description: str
    storyline: str
    milestone_framing: str
    generic_milestones: Tuple[str, ...]
    challenges: Tuple[str, ...]
    opportunities: Tuple[str, ...]
    philosophy: str
    advice: Tuple[str, ...]
    regrets: Tuple[str, ...]
    probability_explanation: str
    risk: str
    opportunity: str
    pattern_descriptions: Dict[PatternKind, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ArchetypeProfile:
    archetype: Archetype
    baseline_multipliers: Dict[MetricName, float]
    volatility: VolatilityProfile
    expected_growth: Tuple[float, float]
    expected_volatility: Tuple[float, float]
    base_probability: float
    alignment: TraitAlignment
    templates: NarrativeTemplates


_OPTIMISTIC = ArchetypeProfile(
    archetype=Archetype.OPTIMISTIC,
    baseline_multipliers={
        MetricName.FINANCIAL: 1.1,
        MetricName.HAPPINESS: 1.2,
        MetricName.CAREER: 1.1,
        MetricName.RELATIONSHIPS: 1.1,
        MetricName.HEALTH: 1.1,
    },
    volatility=VolatilityProfile(base=5.0, bias=3.0),
    expected_growth=(20.0, 40.0),
    expected_volatility=(5.0, 15.0),
    base_probability=25.0,
    alignment=TraitAlignment(trait="openness", threshold=70.0, bonus=10.0),
    templates=NarrativeTemplates(
        title="The {category} breakthrough that exceeded all expectations",
        description=(
            "A future where this decision leads to {growth_desc} outcomes across multiple life "
            "areas, with opportunities compounding beautifully over time."
        ),
        storyline=(
            "Making this {category} decision opened up opportunities I never expected. The initial "
            "challenges quickly turned into stepping stones, and by year 5 everything had fallen "
            "into place. Over fifteen years my overall life balance moved {growth:+.0f} points, and "
            "it still feels like one of the best decisions of my life."
        ),
        milestone_framing="Year {year}: {description} - it was amazing how everything aligned",
        generic_milestones=(
            "Year 2: Breakthrough moment that exceeded all expectations",
            "Year 4: Network expansion led to incredible opportunities",
            "Year 7: Achievement of major personal goal ahead of schedule",
            "Year 10: Recognition and success beyond initial dreams",
        ),
        challenges=(
            "Initial uncertainty that became an exciting learning experience",
            "Temporary setback that led to discovering new strengths",
            "Resource constraints that sparked creative solutions",
        ),
        opportunities=(
            "Unexpected doors opened through positive attitude and enthusiasm",
            "Network connections flourished due to authentic relationship building",
            "Serendipitous events aligned with life goals",
        ),
        philosophy=(
            "Life has a way of working out when you stay positive and remain open to "
            "possibilities. Trust the process and believe in the best outcomes."
        ),
        advice=(
            "Trust your instincts and maintain a positive outlook",
            "Focus on possibilities rather than limitations",
            "Surround yourself with supportive, like-minded people",
        ),
        regrets=(
            "Wish I had been even more bold in pursuing opportunities",
            "Learned that a hopeful outlook helps you spot openings others miss",
            "Regret not trusting my intuition sooner in some situations",
        ),
        probability_explanation=(
            "This outcome has a {confidence_level} likelihood ({confidence}% confidence) based on "
            "your strengths and the momentum that builds when decisions match your values. The "
            "{pattern} pattern shows up consistently in similar simulated lives."
        ),
        risk="Over-optimism might lead to insufficient preparation",
        opportunity="Positive attitude will attract beneficial partnerships and support",
        pattern_descriptions={
            PatternKind.STEADY_GROWTH: "Consistent upward trajectory with compounding benefits",
            PatternKind.VOLATILE_HIGH_REWARD: "Dynamic growth with exciting breakthrough moments",
            PatternKind.STABLE_PLATEAU: "Comfortable equilibrium reached early and enjoyed",
            PatternKind.DECLINE_RECOVERY: "Early bumps that turned into a strong comeback",
            PatternKind.BREAKTHROUGH_MOMENT: "A lucky turn that reshaped everything for the better",
        },
    ),
)

_REALISTIC = ArchetypeProfile(
    archetype=Archetype.REALISTIC,
    baseline_multipliers={m: 1.0 for m in MetricName},
    volatility=VolatilityProfile(base=8.0, bias=0.0),
    expected_growth=(5.0, 20.0),
    expected_volatility=(8.0, 20.0),
    base_probability=45.0,
    alignment=TraitAlignment(trait="conscientiousness", threshold=70.0, bonus=5.0),
    templates=NarrativeTemplates(
        title="Navigating {category} change with balance and wisdom",
        description=(
            "A balanced future that includes both challenges and rewards, with {growth_desc} "
            "development through thoughtful navigation of trade-offs."
        ),
        storyline=(
            "This {category} decision brought both rewards and challenges, as most major life "
            "choices do. The first few years required real adjustment and hard work, and the net "
            "change across my life came to {growth:+.0f} points by year 15. There were trade-offs, "
            "but I learned to navigate them and built resilience along the way."
        ),
        milestone_framing="Year {year}: {description} - required adaptation but led to positive outcomes",
        generic_milestones=(
            "Year 2: Successfully navigated initial adjustment period",
            "Year 5: Reached important personal and professional milestones",
            "Year 8: Overcame significant challenge through persistence",
            "Year 12: Achieved long-term stability and satisfaction",
        ),
        challenges=(
            "Adapting to new circumstances while maintaining balance",
            "Managing competing priorities through better organization",
            "Building new skills while maintaining existing commitments",
        ),
        opportunities=(
            "Strategic positioning led to well-timed opportunities",
            "Skill development opened new career pathways",
            "Balanced approach allowed pursuit of multiple interests",
        ),
        philosophy=(
            "Success comes from balancing ambition with practicality. Expect challenges, prepare "
            "well, and stay adaptable to changing circumstances."
        ),
        advice=(
            "Weigh pros and cons carefully but don't overthink",
            "Prepare for challenges while working toward your goals",
            "Maintain balance between ambition and contentment",
        ),
        regrets=(
            "Wish I had spent less time worrying about potential problems",
            "Learned that most challenges are manageable with the right approach",
            "Regret not giving myself more credit for handling difficulties well",
        ),
        probability_explanation=(
            "This scenario reflects a {confidence_level} probability ({confidence}% confidence) "
            "considering both opportunities and challenges. The {pattern} pattern is common for "
            "people with your profile making similar decisions."
        ),
        risk="Analysis paralysis could delay action on time-sensitive opportunities",
        opportunity="Balanced approach will enable pursuit of multiple complementary goals",
        pattern_descriptions={
            PatternKind.STEADY_GROWTH: "Steady progress with expected ups and downs",
            PatternKind.VOLATILE_HIGH_REWARD: "High-risk, high-reward path with significant variability",
            PatternKind.STABLE_PLATEAU: "Little net change once the dust settles",
            PatternKind.DECLINE_RECOVERY: "A difficult stretch followed by gradual recovery",
            PatternKind.BREAKTHROUGH_MOMENT: "One pivotal event defines the outcome",
        },
    ),
)

_CAUTIOUS = ArchetypeProfile(
    archetype=Archetype.CAUTIOUS,
    baseline_multipliers={
        MetricName.FINANCIAL: 1.05,
        MetricName.HAPPINESS: 0.95,
        MetricName.CAREER: 0.95,
        MetricName.RELATIONSHIPS: 1.0,
        MetricName.HEALTH: 1.05,
    },
    volatility=VolatilityProfile(base=4.0, bias=-1.0),
    expected_growth=(0.0, 15.0),
    expected_volatility=(3.0, 12.0),
    base_probability=20.0,
    alignment=TraitAlignment(trait="neuroticism", threshold=60.0, bonus=15.0),
    templates=NarrativeTemplates(
        title="Building security through thoughtful {category} planning",
        description=(
            "A secure future built on careful planning and risk management, achieving "
            "{growth_desc} progress while maintaining stability and peace of mind."
        ),
        storyline=(
            "I'm grateful I approached this {category} decision thoughtfully and prepared for "
            "several outcomes. I didn't take the most aggressive path, but the stability I "
            "prioritized served me well and my overall balance shifted {growth:+.0f} points over "
            "fifteen years. I avoided pitfalls that could have derailed my progress."
        ),
        milestone_framing="Year {year}: {description} - managed it carefully to minimize disruption",
        generic_milestones=(
            "Year 1: Established solid foundation with minimal risk",
            "Year 3: Built emergency fund and security buffer",
            "Year 6: Achieved steady progress through careful planning",
            "Year 10: Reached comfortable stability with peace of mind",
        ),
        challenges=(
            "Carefully managing risks while pursuing necessary changes",
            "Building safety nets before taking any significant steps",
            "Thorough preparation to avoid potential complications",
        ),
        opportunities=(
            "Careful preparation positioned for low-risk, high-reward opportunities",
            "Strong foundation enabled confident decision-making when chances arose",
            "Risk management strategies protected while allowing selective growth",
        ),
        philosophy=(
            "Wisdom lies in careful planning and gradual progress. Security and stability provide "
            "the foundation for lasting happiness and peace of mind."
        ),
        advice=(
            "Build a solid foundation before making major moves",
            "Have backup plans and emergency resources ready",
            "Make decisions based on long-term security and stability",
        ),
        regrets=(
            "Sometimes wonder if I was too conservative with certain opportunities",
            "Learned that calculated risks can lead to significant rewards",
            "Regret not pushing my comfort zone a little more in some areas",
        ),
        probability_explanation=(
            "This conservative approach has a {confidence_level} likelihood ({confidence}% "
            "confidence) given your planning style and risk preferences. The {pattern} pattern "
            "shows the benefits of prioritizing stability and security."
        ),
        risk="Excessive caution might result in missed opportunities",
        opportunity="Strong foundation will allow confident action when high-value opportunities arise",
        pattern_descriptions={
            PatternKind.STEADY_GROWTH: "Reliable growth through careful planning",
            PatternKind.VOLATILE_HIGH_REWARD: "Unpredictable but potentially rewarding journey",
            PatternKind.STABLE_PLATEAU: "Security preserved with few surprises",
            PatternKind.DECLINE_RECOVERY: "Setbacks absorbed by safety nets, then regained",
            PatternKind.BREAKTHROUGH_MOMENT: "A single event tested the plan and it held",
        },
    ),
)

_ADVENTUROUS = ArchetypeProfile(
    archetype=Archetype.ADVENTUROUS,
    baseline_multipliers={
        MetricName.FINANCIAL: 0.95,
        MetricName.HAPPINESS: 1.15,
        MetricName.CAREER: 1.1,
        MetricName.RELATIONSHIPS: 1.05,
        MetricName.HEALTH: 0.98,
    },
    volatility=VolatilityProfile(base=12.0, bias=2.0),
    expected_growth=(10.0, 35.0),
    expected_volatility=(15.0, 30.0),
    base_probability=15.0,
    alignment=TraitAlignment(trait="openness", threshold=75.0, bonus=10.0),
    templates=NarrativeTemplates(
        title="The bold {category} leap that transformed everything",
        description=(
            "An exciting future full of growth and discovery, where embracing risk and "
            "uncertainty leads to {growth_desc} transformation and remarkable experiences."
        ),
        storyline=(
            "Taking this bold {category} leap was exactly what I needed to break out of my "
            "comfort zone. There were wild ups and downs, yet my life as a whole moved "
            "{growth:+.0f} points over fifteen years and I discovered capabilities I never knew I "
            "had. The risk was worth the adventure."
        ),
        milestone_framing="Year {year}: {description} - embraced the change and turned it into an adventure",
        generic_milestones=(
            "Year 1: Took the bold leap and immediately felt energized",
            "Year 3: Navigated major challenge that led to unexpected growth",
            "Year 6: Discovered new passion through willingness to explore",
            "Year 9: Achieved breakthrough by embracing uncertainty",
        ),
        challenges=(
            "Embracing uncertainty as fuel for personal growth",
            "Turning obstacles into adventures and learning opportunities",
            "Using setbacks as springboards for even bolder moves",
        ),
        opportunities=(
            "Bold moves attracted exciting and unconventional opportunities",
            "Willingness to take risks opened previously unimaginable paths",
            "Embracing change led to rapid growth and discovery",
        ),
        philosophy=(
            "Life is meant to be lived boldly. The biggest risk is not taking any risks at all. "
            "Growth happens outside your comfort zone."
        ),
        advice=(
            "Don't let fear hold you back from amazing experiences",
            "Embrace uncertainty as the price of growth",
            "Take calculated risks and learn from every outcome",
        ),
        regrets=(
            "Regret not taking even bigger risks when I had the chance",
            "Learned that failure is just another form of valuable education",
            "Wish I had started this adventurous approach to life even earlier",
        ),
        probability_explanation=(
            "This bold path has a {confidence_level} probability ({confidence}% confidence) of "
            "unfolding this way, given your willingness to embrace risk and adapt quickly. The "
            "{pattern} pattern reflects how adventurous decisions can pay off despite uncertainty."
        ),
        risk="Risk-taking could occasionally lead to significant setbacks",
        opportunity="Bold moves will differentiate and create unique value propositions",
        pattern_descriptions={
            PatternKind.STEADY_GROWTH: "Building momentum through strategic risk-taking",
            PatternKind.VOLATILE_HIGH_REWARD: "Thrilling ride with major wins and challenges",
            PatternKind.STABLE_PLATEAU: "Restless calm between adventures",
            PatternKind.DECLINE_RECOVERY: "Early stumbles that fueled a bigger comeback",
            PatternKind.BREAKTHROUGH_MOMENT: "One daring move that changed the whole story",
        },
    ),
)

ARCHETYPE_TABLE: Dict[Archetype, ArchetypeProfile] = {
    p.archetype: p for p in (_OPTIMISTIC, _REALISTIC, _CAUTIOUS, _ADVENTUROUS)
}


def profile_for(archetype: Archetype) -> ArchetypeProfile:
    return ARCHETYPE_TABLE[archetype]
