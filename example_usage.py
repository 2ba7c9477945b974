#!/usr/bin/env python3
"""
Example usage of the PDF study assistant without the web api
"""

import asyncio
import os
import sys
from pathlib import Path

# Add src to Python path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from study_assistant.config import get_settings
from study_assistant.file_helpers import raw_file_from_path
from study_assistant.models import FileStatus
from study_assistant.session import StudySession


async def run(pdf_path: Path):
    settings = get_settings()

    async with StudySession.from_settings(settings) as session:
        created = session.files.add_files([raw_file_from_path(pdf_path)])
        print("Analyzing PDF...")
        await session.files.join(f.id for f in created)

        entry = session.files.get(created[0].id)
        if entry.status != FileStatus.COMPLETED:
            print(f"✗ Analysis failed: {entry.error_message}")
            return

        print("✓ Analysis complete")
        print(f"\nSummary:\n{entry.result.summary[:300]}...")
        print(f"\nTopics: {', '.join(entry.result.topics)}")

        index = session.topic_index()
        print(f"\nHigh priority topics across all documents: {len(index.high_priority_topics)}")

        print("\nBuilding roadmap...")
        steps = await session.generate_roadmap()
        for step in steps or []:
            print(f"  {step.step_name}: {step.title}")

        report_path = session.export_report(Path("outputs"))
        print(f"\n✓ Report saved to: {report_path}")


def main():
    """Example of how to use the study session directly"""

    print("This example calls the Google Gemini API")
    print("Set GEMINI_API_KEY in your environment or in a .env file first")
    print()

    # Example PDF path (replace with your actual PDF)
    pdf_path = Path("example.pdf")

    if not os.path.exists(pdf_path):
        print(f"Please place a PDF file named '{pdf_path}' in the current directory")
        return

    asyncio.run(run(pdf_path))


if __name__ == "__main__":
    main()
