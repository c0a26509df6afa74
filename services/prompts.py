from __future__ import annotations

import json

from app.models.analysis import BiasAnalysisInput, EntityKind

_SCALE_POLARIZATION = "0 = very left-wing, 50 = moderate, 100 = very right-wing"
_SCALE_OBJECTIVITY = "0 = very opinionated, 100 = very factual"


def build_html_parsing_prompt(html_chunk: str) -> str:
    return (
        "You parse one piece of the HTML DOM of a news article and extract the "
        "title, the author(s), the publish date, the last-updated date and the "
        "main article text. The piece is a substring of the full document, so "
        "tags may be unclosed and text may be cut off at either end; include "
        "such text as-is.\n\n"
        "Guidelines:\n"
        "1. title: the article headline. It is usually only in the first piece "
        "(inside <head>/<title> or the first <h1>). Drop a trailing separator "
        "plus publication name such as ' | CNN' or ' - The Guardian'. Use \"\" "
        "when no title is present.\n"
        "2. authors: the names of the people who wrote the article, without a "
        "'By' prefix. Usually near the start or the end. Use [] when none are "
        "present.\n"
        "3. date_published: when the article was first published, as an ISO 8601 "
        "string (for example 2024-07-01T20:59:00-04:00, or 2024-07-01 when only "
        "the day is known). Use \"\" when it cannot be determined.\n"
        "4. date_updated: when the article was last updated (often preceded by "
        "'Updated'), same format. Use \"\" when absent.\n"
        "5. content: the main article text exactly as written, in reading order. "
        "Leave out captions, navigation, ads, newsletter prompts, related-story "
        "lists, copyright lines and other non-article text. Use \"\" when this "
        "piece holds no article text.\n\n"
        "HTML DOM substring:\n"
        f"{html_chunk}\n"
    )


def build_summary_prompt(article_text: str) -> str:
    return (
        "Write a concise, accurate summary of the news article below covering "
        "its main points, key arguments and significant evidence. Present the "
        "summary as markdown bullet points. Cite specific passages with "
        "footnote markers like [1]; each footnote's text must be the exact quote "
        "from the article so it can be highlighted. If the content is not a news "
        "article, still summarize it and note that it may not be news.\n\n"
        f"Article content:\n{article_text}\n"
    )


def build_political_bias_prompt(article_text: str) -> str:
    return (
        "Analyze the news article below for political bias and assign a "
        f"bias_score from 0 to 100 ({_SCALE_POLARIZATION}). Give specific examples "
        "as markdown bullet points in 'analysis', citing passages with footnote "
        "markers whose text is the exact quote from the article. If the content "
        "is not news or political bias does not apply, use a bias_score of 50, "
        "explain why, and return no footnotes.\n\n"
        f"Article content:\n{article_text}\n"
    )


def build_objectivity_prompt(article_text: str) -> str:
    return (
        "Analyze how opinionated or factual the news article below is and assign "
        f"a rhetoric_score from 0 to 100 ({_SCALE_OBJECTIVITY}). Give specific "
        "examples as markdown bullet points in 'analysis', citing passages with "
        "footnote markers whose text is the exact quote from the article. If the "
        "content is not news or objectivity does not apply, use a rhetoric_score "
        "of 100, explain why, and return no footnotes.\n\n"
        f"Article content:\n{article_text}\n"
    )


def build_entity_analysis_prompt(kind: EntityKind, data: BiasAnalysisInput) -> str:
    subject = "a journalist's" if kind is EntityKind.JOURNALIST else "a publication's"
    owner = "journalist's" if kind is EntityKind.JOURNALIST else "publication's"
    return (
        f"Given the following data about {subject} articles, write an analysis "
        f"explaining the {owner} average polarization and objectivity scores. "
        "Support your points with specific examples from the article summaries. "
        "Present the analysis as markdown bullet points in the 'analysis' field.\n\n"
        "Data:\n"
        f"- Average Polarization Score: {data.average_polarization} ({_SCALE_POLARIZATION})\n"
        f"- Average Objectivity Score: {data.average_objectivity} ({_SCALE_OBJECTIVITY})\n"
        f"- Article Summaries: {json.dumps(data.summaries, ensure_ascii=False)}\n"
    )


def build_publication_metadata_prompt(hostname: str) -> str:
    return (
        "Given the hostname of a news organization (for example www.cnn.com), "
        "reply with only a JSON object, no markdown or code fences, of the form:\n"
        '{"name": "<common human-friendly name>", "date_founded": "<YYYY-MM-DD>"}\n\n'
        'For "www.cnn.com" the correct answer is '
        '{"name": "CNN", "date_founded": "1980-06-01"}.\n\n'
        "If you cannot tell the human-readable name, use the hostname without "
        'a leading "www.". If the founding date is unknown or ambiguous, use '
        '"NULL" for date_founded. Accuracy matters.\n\n'
        f"Hostname: {hostname}\n"
    )
