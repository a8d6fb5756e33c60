import copy
from typing import Any, Dict

# Substituted when a counselor uploads a report without a summary
_DEFAULT_SUMMARY: Dict[str, Any] = {
    "name": "Student Report",
    "reportTitle": "Career Assessment Report",
    "assessmentFramework": "ClassMent Career Framework",
    "orientationStyle": {
        "dominantStyle": "Analytical",
        "secondaryStyle": "Creative",
        "description": "Balanced approach combining analytical thinking with creative problem-solving.",
    },
    "interest": {
        "dominantInterestAreas": ["Technology", "Design", "Research"],
    },
    "personality": {
        "dominantTraits": ["Detail-oriented", "Innovative", "Persistent"],
    },
    "aptitude": {
        "dominantStrengths": ["Logical reasoning", "Pattern recognition", "Spatial awareness"],
    },
    "emotionalQuotient": {
        "dominantAttributes": ["Self-awareness", "Empathy", "Adaptability"],
    },
    "careerMatches": [
        {
            "domain": "Software Development",
            "details": "Analytical skills and problem-solving abilities make you well-suited for software development.",
            "link": "https://theclassment.com/careers/software-development",
        },
        {
            "domain": "UX/UI Design",
            "details": "Creative thinking and attention to detail align well with user experience design.",
            "link": "https://theclassment.com/careers/ux-design",
        },
        {
            "domain": "Data Science",
            "details": "Pattern recognition and logical reasoning skills are valuable in data science.",
            "link": "https://theclassment.com/careers/data-science",
        },
    ],
}


def default_summary() -> Dict[str, Any]:
    return copy.deepcopy(_DEFAULT_SUMMARY)
