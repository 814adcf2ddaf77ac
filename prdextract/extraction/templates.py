"""PRD section template catalogue."""

from collections.abc import Iterable

from pydantic import BaseModel


class SectionTemplate(BaseModel):
    """Describes one target section of the extraction schema."""

    id: str
    title: str
    description: str
    order: int
    required: bool = True


PRD_SECTION_TEMPLATES: tuple[SectionTemplate, ...] = (
    SectionTemplate(
        id="executive-summary",
        title="Executive Summary",
        description="High-level overview of the product, problem, and solution.",
        order=1,
    ),
    SectionTemplate(
        id="problem-statement",
        title="Problem Statement",
        description="Detailed description of the problem being solved.",
        order=2,
    ),
    SectionTemplate(
        id="goals-metrics",
        title="Goals and Success Metrics",
        description="Primary goals and measurable success criteria.",
        order=3,
    ),
    SectionTemplate(
        id="target-users",
        title="Target Users/Personas",
        description="Description of user personas and their characteristics.",
        order=4,
    ),
    SectionTemplate(
        id="user-stories",
        title="User Stories and Use Cases",
        description="User stories with acceptance criteria and detailed use cases.",
        order=5,
    ),
    SectionTemplate(
        id="functional-requirements",
        title="Functional Requirements",
        description="Detailed functional requirements with priorities.",
        order=6,
    ),
    SectionTemplate(
        id="non-functional-requirements",
        title="Non-Functional Requirements",
        description="Performance, reliability, scalability, and other NFRs.",
        order=7,
    ),
    SectionTemplate(
        id="technical-architecture",
        title="Technical Architecture/Constraints",
        description="Architecture overview, technology choices, and constraints.",
        order=8,
    ),
    SectionTemplate(
        id="security-compliance",
        title="Security and Compliance",
        description="Security considerations and compliance requirements.",
        order=9,
    ),
    SectionTemplate(
        id="timeline-milestones",
        title="Timeline and Milestones",
        description="Project phases, key dates, and deliverables.",
        order=10,
    ),
    SectionTemplate(
        id="dependencies-risks",
        title="Dependencies and Risks",
        description="External dependencies, risks, and mitigation strategies.",
        order=11,
    ),
    SectionTemplate(
        id="success-criteria",
        title="Success Criteria",
        description="Launch criteria and post-launch success indicators.",
        order=12,
    ),
    SectionTemplate(
        id="appendices",
        title="Appendices",
        description="Additional supporting materials and references.",
        order=13,
        required=False,
    ),
)

# Sections consulted, in order, when a title has to be derived from content
TITLE_SOURCE_SECTIONS: tuple[str, ...] = ("executive-summary", "problem-statement")


class SectionCatalogue:
    """Ordered, id-indexed collection of section templates."""

    def __init__(
        self,
        templates: Iterable[SectionTemplate] = PRD_SECTION_TEMPLATES,
        title_sources: Iterable[str] = TITLE_SOURCE_SECTIONS,
    ):
        self.templates = tuple(sorted(templates, key=lambda t: t.order))
        if not self.templates:
            raise ValueError("SectionCatalogue needs at least one template")
        self.title_sources = tuple(title_sources)
        self._by_id = {t.id: t for t in self.templates}

    def __len__(self) -> int:
        return len(self.templates)

    def __iter__(self):
        return iter(self.templates)

    def get(self, section_id: str) -> SectionTemplate | None:
        return self._by_id.get(section_id)

    def title_for(self, section_id: str) -> str:
        """Human-readable title for ``section_id``, or the id itself if unknown."""
        template = self._by_id.get(section_id)
        return template.title if template else section_id


DEFAULT_CATALOGUE = SectionCatalogue()
