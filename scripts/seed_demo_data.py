#!/usr/bin/env python3
"""Seed a demo repository with a few prompts into the configured Supabase project.

Usage:
    python scripts/seed_demo_data.py --user-id <auth user id>
    python scripts/seed_demo_data.py --user-id <id> --repo-name "Starter Prompts"
"""

from __future__ import annotations

import argparse
import sys

from prompts_go.db.gateway import get_gateway

PROMPTS = [
    {
        "title": "Blog Post Outline",
        "description": "Turns a topic into a structured, skimmable blog outline.",
        "content": (
            "You are an experienced content strategist.\n\n"
            "Write an outline for a blog post about {{topic}} aimed at {{audience}}.\n"
            "Include a working title, 5-7 section headings and one key point per section."
        ),
        "category": "writing",
        "tags": ["blogging", "outline"],
        "model_compatibility": ["gpt4", "claude3"],
    },
    {
        "title": "Code Review Checklist",
        "description": "Reviews a diff for correctness, readability and test coverage.",
        "content": (
            "Review the following change as a senior engineer.\n\n"
            "{{diff}}\n\n"
            "List blocking issues first, then suggestions. Reference line numbers."
        ),
        "category": "coding",
        "tags": ["code-review", "quality"],
        "model_compatibility": ["gpt4", "claude3", "gemini"],
    },
    {
        "title": "Market Research Brief",
        "description": "Summarises a market segment with competitors and open questions.",
        "content": (
            "Prepare a one-page brief on the {{segment}} market.\n"
            "Cover size, main competitors, customer pain points and open questions."
        ),
        "category": "research",
        "tags": ["market", "research"],
        "model_compatibility": ["gpt4"],
    },
]


def seed(user_id: str, repo_name: str) -> int:
    gateway = get_gateway()
    failures = 0

    repo = gateway.repos.create(
        {
            "user_id": user_id,
            "name": repo_name,
            "description": "Demo prompts",
            "visibility": "public",
            "tags": ["demo"],
        }
    )
    if not repo.ok:
        print(f"  FAILED repo '{repo_name}': {repo.error.message}", file=sys.stderr)
        return 1
    print(f"  Created repo: {repo.data.name} ({repo.data.id})")

    for prompt in PROMPTS:
        result = gateway.prompts.create({**prompt, "repo_id": repo.data.id, "user_id": user_id})
        if result.ok:
            print(f"  Created prompt: {result.data.slug}")
        else:
            failures += 1
            print(f"  FAILED {prompt['title']}: {result.error.message}", file=sys.stderr)
    return failures


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo repo and prompts into PromptsGo")
    parser.add_argument("--user-id", required=True, help="Owner of the seeded rows")
    parser.add_argument("--repo-name", default="Demo Prompts")
    args = parser.parse_args()

    print(f"Seeding {len(PROMPTS)} prompts for user {args.user_id} ...")
    failures = seed(args.user_id, args.repo_name)
    print("Done." if not failures else f"Done with {failures} failure(s).")
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
