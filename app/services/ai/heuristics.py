"""
Offline heuristics for summary, tag and category inference.

Deterministic and model-free: used when the model is unavailable and to
repair individual fields of a low-quality model response.
"""

import re

EMPTY_SUMMARY_PLACEHOLDER = "Untitled note"
FALLBACK_TAG = "general"
FALLBACK_CATEGORY = "Technology"
MAX_INFERRED_TAGS = 4

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_NEWLINES_RE = re.compile(r"\n+")
_TRAILING_PARTIAL_WORD_RE = re.compile(r"\s\S*$")

_IMPORTANT_RE = re.compile(
    r"\b(key|important|main|essential|critical|conclusion|result|therefore|however|"
    r"significantly|notably|ultimately|takeaway|recommend|suggest|highlight|summary)\b",
    re.IGNORECASE,
)

TAG_PATTERNS: tuple[tuple[str, re.Pattern], ...] = tuple(
    (tag, re.compile(pattern))
    for tag, pattern in (
        ("web-development", r"\b(html|css|javascript|react|nextjs|vue|angular|frontend|web.?dev)\b"),
        ("machine-learning", r"\b(ml|machine.?learning|neural|deep.?learning|model|training|dataset)\b"),
        ("artificial-intelligence", r"\b(ai|artificial.?intelligence|gpt|llm|chatbot|nlp)\b"),
        ("programming", r"\b(code|coding|programming|developer|software|algorithm|function)\b"),
        ("api-design", r"\b(api|rest|graphql|endpoint|http|request|response)\b"),
        ("database", r"\b(database|sql|nosql|postgres|mongo|supabase|firebase)\b"),
        ("devops", r"\b(devops|docker|kubernetes|ci.?cd|deploy|aws|azure|cloud)\b"),
        ("mobile-dev", r"\b(mobile|ios|android|react.?native|flutter|swift|kotlin)\b"),
        ("productivity", r"\b(productivity|workflow|automat|efficiency|tool|process)\b"),
        ("finance", r"\b(finance|invest|money|budget|revenue|profit|stock|crypto)\b"),
        ("health-wellness", r"\b(health|fitness|exercise|nutrition|sleep|meditat|wellness)\b"),
        ("writing", r"\b(writing|blog|article|content.?creation|copywriting|storytell)\b"),
        ("design", r"\b(design|ux|ui|figma|prototype|wireframe|visual)\b"),
        ("project-management", r"\b(project|sprint|agile|kanban|scrum|milestone|deadline)\b"),
        ("startup", r"\b(startup|entrepreneur|mvp|founder|venture|pitch|growth)\b"),
        ("marketing", r"\b(marketing|seo|social.?media|brand|campaign|analytics|growth.?hack)\b"),
    )
)

# Checked in priority order; the first match wins.
CATEGORY_PATTERNS: tuple[tuple[str, re.Pattern], ...] = tuple(
    (category, re.compile(pattern))
    for category, pattern in (
        (
            "Technology",
            r"\b(code|programming|api|javascript|typescript|python|react|database|software|deploy|"
            r"server|ai\b|machine.?learning|algorithm|github|docker|cloud|devops|frontend|backend|"
            r"css|html|framework)\b",
        ),
        (
            "Business",
            r"\b(revenue|startup|market|strategy|customer|growth|sales|invest|profit|business|"
            r"entrepreneur|product.?market|kpi|roi|branding|competitor)\b",
        ),
        (
            "Personal",
            r"\b(health|fitness|meditation|habit|journal|mindful|wellness|exercise|sleep|diet|"
            r"goal.?setting|self.?improve|gratitude|mental.?health)\b",
        ),
        (
            "Creative",
            r"\b(design|illustration|photography|video|music|art|creative|typography|sketch|"
            r"animation|writing|storytell|branding|ux|ui)\b",
        ),
        (
            "Learning",
            r"\b(course|tutorial|textbook|lecture|syllabus|exam|study|curriculum|academic|"
            r"university|certificate|mooc|edx|coursera|udemy)\b",
        ),
        (
            "Work",
            r"\b(meeting|deadline|sprint|standup|project.?manage|jira|task|kanban|scrum|agile|"
            r"collaboration|stakeholder|milestone|okr)\b",
        ),
    )
)


def _flatten(content: str) -> str:
    return _NEWLINES_RE.sub(" ", content or "")


def _candidate_sentences(content: str) -> list[str]:
    sentences = (s.strip() for s in _SENTENCE_SPLIT_RE.split(_flatten(content)))
    return [s for s in sentences if 20 < len(s) < 200]


def _score_sentence(sentence: str, index: int, total: int, title_words: list[str]) -> int:
    score = 0
    if _IMPORTANT_RE.search(sentence):
        score += 3

    lower = sentence.lower()
    score += sum(1 for word in title_words if word in lower)

    if index > 0:
        score += 1
    if index >= total * 0.5:
        score += 1
    if len(sentence) > 60:
        score += 1
    return score


def infer_summary(title: str, content: str) -> str:
    """
    Build a two-sentence "key takeaway" summary without a model.

    Sentences are scored for salience keywords, overlap with the title,
    position past the opening and length, so the result is not simply the
    first lines of the document.
    """
    sentences = _candidate_sentences(content)

    if not sentences:
        clean = _flatten(content).strip()
        if len(clean) > 150:
            return _TRAILING_PARTIAL_WORD_RE.sub("", clean[:150]) + "..."
        return clean or (title or "").strip() or EMPTY_SUMMARY_PLACEHOLDER

    title_words = [w for w in (title or "").lower().split() if len(w) > 3]
    total = len(sentences)
    scored = [
        (_score_sentence(sentence, index, total, title_words), sentence)
        for index, sentence in enumerate(sentences)
    ]
    # sorted() is stable, so equal scores keep document order
    ranked = sorted(scored, key=lambda pair: pair[0], reverse=True)

    return ". ".join(sentence for _, sentence in ranked[:2]) + "."


def infer_tags(title: str, content: str) -> list[str]:
    """Match topic keyword patterns in order; at most four tags."""
    text = f"{title or ''} {content or ''}".lower()
    found: list[str] = []

    for tag, pattern in TAG_PATTERNS:
        if pattern.search(text):
            found.append(tag)
        if len(found) >= MAX_INFERRED_TAGS:
            break

    return found or [FALLBACK_TAG]


def infer_category(title: str, content: str) -> str:
    text = f"{title or ''} {content or ''}".lower()

    for category, pattern in CATEGORY_PATTERNS:
        if pattern.search(text):
            return category

    return FALLBACK_CATEGORY
