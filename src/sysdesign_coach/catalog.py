"""Статический каталог секций интервью и учебных задач по system design."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class ProblemDefinition:
    """Формулировка задачи, которую кандидат проектирует в рамках сессии."""

    identifier: str
    title: str
    description: str


@dataclass(frozen=True)
class SectionDefinition:
    """Описание одной оцениваемой секции интервью."""

    identifier: str
    category: str
    title: str
    description: str
    placeholder: str

    @property
    def label(self) -> str:
        """Подпись секции для запроса итоговой оценки."""
        return f"{self.category} - {self.title}"


SYSTEM_DESIGN_PROBLEMS: tuple[ProblemDefinition, ...] = (
    ProblemDefinition(
        identifier="instagram",
        title="Design a Photo Sharing System",
        description=(
            "Design a system (like Instagram) where users can upload photos, follow "
            "other users, and view a feed of photos from people they follow. Focus on "
            "scalability, feed generation, and media storage."
        ),
    ),
    ProblemDefinition(
        identifier="tinyurl",
        title="Design a URL Shortener",
        description=(
            "Design a service (like TinyURL or Bit.ly) that converts long URLs into "
            "short aliases and redirects users. Focus on high availability, ID "
            "generation strategies, and read-heavy traffic patterns."
        ),
    ),
    ProblemDefinition(
        identifier="whatsapp",
        title="Design a Chat Application",
        description=(
            "Design a real-time messaging system (like WhatsApp) supporting 1-on-1 and "
            "group chats. Focus on message delivery guarantees, offline storage, "
            "websocket handling, and user presence."
        ),
    ),
    ProblemDefinition(
        identifier="uber",
        title="Design a Ride Sharing Service",
        description=(
            "Design a platform (like Uber/Lyft) to match riders with drivers and track "
            "locations in real-time. Focus on geospatial indexing (QuadTrees/Geohash), "
            "high-frequency location updates, and consistency."
        ),
    ),
    ProblemDefinition(
        identifier="youtube",
        title="Design a Video Streaming Platform",
        description=(
            "Design a video platform (like YouTube/Netflix) for uploading and streaming "
            "content. Focus on large file blob storage, CDN usage, transcoding "
            "pipelines, and adaptive bitrate streaming."
        ),
    ),
    ProblemDefinition(
        identifier="crawler",
        title="Design a Web Crawler",
        description=(
            "Design a distributed web crawler that harvests pages from the web for a "
            "search engine. Focus on deduplication, politeness, distributed task "
            "queues, and handling massive scale."
        ),
    ),
    ProblemDefinition(
        identifier="ecommerce",
        title="Design an E-commerce Inventory System",
        description=(
            "Design a system (like Amazon) to handle product inventory and ordering. "
            "Focus on concurrency control (handling overselling), database locking, "
            "and eventual consistency for search indexing."
        ),
    ),
)

SYSTEM_DESIGN_SECTIONS: tuple[SectionDefinition, ...] = (
    # 1. Requirements
    SectionDefinition(
        identifier="functional_reqs",
        category="1. Requirements Clarification",
        title="Functional Requirements",
        description="List the specific features and capabilities the system must provide.",
        placeholder="- Feature 1...\n- Feature 2...\n- User capabilities...",
    ),
    SectionDefinition(
        identifier="non_functional_reqs",
        category="1. Requirements Clarification",
        title="Non-Functional Requirements",
        description=(
            "Define system qualities like scalability, availability, latency, and "
            "consistency requirements."
        ),
        placeholder=(
            "- Availability (e.g., 99.99%)\n- Latency requirements\n"
            "- Consistency model (Strong vs Eventual)..."
        ),
    ),
    # 2. Estimation
    SectionDefinition(
        identifier="traffic_estimates",
        category="2. Back-of-the-Envelope Estimation",
        title="Traffic & DAU Estimates",
        description=(
            "Estimate Daily Active Users (DAU) and Requests Per Second (QPS) for reads "
            "and writes."
        ),
        placeholder="DAU: 10 Million\nRead QPS: ~10k\nWrite QPS: ~100...",
    ),
    SectionDefinition(
        identifier="storage_estimates",
        category="2. Back-of-the-Envelope Estimation",
        title="Storage Estimates",
        description=(
            "Calculate total storage required over a specific period (e.g., 5 years), "
            "including media and metadata."
        ),
        placeholder="Data size per entry * Entries per day * Retention period...",
    ),
    SectionDefinition(
        identifier="bandwidth_estimates",
        category="2. Back-of-the-Envelope Estimation",
        title="Bandwidth Estimates",
        description=(
            "Estimate network bandwidth usage for incoming (ingress) and outgoing "
            "(egress) traffic."
        ),
        placeholder="Ingress: 40TB / 86400s = ~460 MB/s...",
    ),
    # 3. API Design
    SectionDefinition(
        identifier="api_endpoints",
        category="3. API Design",
        title="Core API Endpoints",
        description=(
            "Define the key REST or RPC endpoints, including method, path, and key "
            "parameters."
        ),
        placeholder="POST /resource\nGET /resource/:id...",
    ),
    # 4. Data Model
    SectionDefinition(
        identifier="db_schema",
        category="4. Data Model & Storage",
        title="Database Schema Design",
        description="Outline the data model (tables/collections, columns/fields) and relationships.",
        placeholder="Table A: id (PK), col1, col2\nTable B: id (PK), a_id (FK)...",
    ),
    SectionDefinition(
        identifier="db_choice",
        category="4. Data Model & Storage",
        title="Storage Technology Choice",
        description=(
            "Select the appropriate database technologies (SQL vs NoSQL, Blob storage) "
            "and justify your choice."
        ),
        placeholder="Use Relational DB for...\nUse NoSQL for...\nUse Blob storage for...",
    ),
    # 5. High Level Design
    SectionDefinition(
        identifier="hld_components",
        category="5. High-Level Design",
        title="System Architecture Components",
        description=(
            "Identify the major system components (Load Balancers, API Gateway, "
            "Services, Queues)."
        ),
        placeholder="Client -> CDN -> Load Balancer -> Service A -> Database...",
    ),
    # 6. Detailed Design
    SectionDefinition(
        identifier="partitioning",
        category="6. Detailed Component Design",
        title="Partitioning & Sharding",
        description=(
            "Explain how you will shard data to handle scale (e.g., Sharding Key "
            "selection)."
        ),
        placeholder="Shard by UserID...\nConsistent Hashing strategy...",
    ),
    SectionDefinition(
        identifier="caching",
        category="6. Detailed Component Design",
        title="Caching Strategy",
        description=(
            "Describe where caching is used (CDN, Redis/Memcached) and the eviction "
            "policies."
        ),
        placeholder="Use CDN for static assets.\nUse Redis for hot data. LRU policy...",
    ),
)


def list_sections() -> tuple[SectionDefinition, ...]:
    """Возвращает секции интервью в порядке отображения и оценивания."""
    return SYSTEM_DESIGN_SECTIONS


def list_sample_problems() -> tuple[ProblemDefinition, ...]:
    """Возвращает встроенные учебные задачи."""
    return SYSTEM_DESIGN_PROBLEMS


def get_sample_problem(identifier: str) -> ProblemDefinition:
    """Находит учебную задачу по идентификатору."""
    normalized = identifier.strip().lower()
    for problem in SYSTEM_DESIGN_PROBLEMS:
        if problem.identifier == normalized:
            return problem
    known = ", ".join(problem.identifier for problem in SYSTEM_DESIGN_PROBLEMS)
    raise ValueError(f"Unknown problem '{identifier}'. Available: {known}.")


def group_sections_by_category(
    sections: Iterable[SectionDefinition],
) -> dict[str, list[SectionDefinition]]:
    """Группирует секции по категориям, сохраняя исходный порядок."""
    groups: dict[str, list[SectionDefinition]] = {}
    for section in sections:
        groups.setdefault(section.category, []).append(section)
    return groups
