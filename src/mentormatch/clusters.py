"""Capability clusters used for partial capability matches.

When a mentee's capability has no exact counterpart on the mentor's side, a
capability from the same cluster still earns partial credit.
"""

from __future__ import annotations

from typing import Dict, List, Optional

CAPABILITY_CLUSTERS: Dict[str, List[str]] = {
    "Communication": [
        "Effective Communication",
        "Strategic Communication",
        "Stakeholder Management",
        "Assertiveness",
        "Active Listening",
        "Presenting & Public Speaking",
    ],
    "Leadership": [
        "Leadership & People Management",
        "Coaching & Developing Others",
        "Delegation & Empowerment",
        "Leading Through Change",
        "Influence Without Authority",
        "Executive Presence",
    ],
    "Strategy & Execution": [
        "Strategic Thinking & Execution",
        "Decision-Making Under Uncertainty",
        "Problem Solving & Analytical Thinking",
        "Prioritisation & Focus",
        "Business Acumen",
    ],
    "Interpersonal & Emotional Intelligence": [
        "Empathy",
        "Emotional Intelligence",
        "Conflict Resolution",
        "Building Trust & Relationships",
        "Giving & Receiving Feedback",
    ],
    "Career & Growth": [
        "Career Navigation & Growth",
        "Personal Branding & Visibility",
        "Networking & Relationship Building",
        "Resilience & Adaptability",
    ],
    "Technical & Domain": [
        "Domain Expertise",
        "Technical / Product Knowledge",
        "Data-Driven Decision Making",
        "Innovation & Creativity",
    ],
    "Cross-Functional": [
        "Cross-Functional Collaboration",
        "Managing Up",
        "Work–Life Balance & Wellbeing",
    ],
}

_CLUSTER_BY_CAPABILITY: Dict[str, str] = {
    capability.lower(): cluster
    for cluster, capabilities in CAPABILITY_CLUSTERS.items()
    for capability in capabilities
}


def cluster_for(capability: str) -> Optional[str]:
    return _CLUSTER_BY_CAPABILITY.get(capability.strip().lower())


def same_cluster(first: str, second: str) -> bool:
    cluster = cluster_for(first)
    return cluster is not None and cluster == cluster_for(second)


__all__ = ["CAPABILITY_CLUSTERS", "cluster_for", "same_cluster"]
