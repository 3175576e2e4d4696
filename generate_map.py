#!/usr/bin/env python3
"""
FloodWatch - Generate Road Report Map
Fetches crowdsourced road reports from Supabase and creates an interactive map.
"""
import asyncio
import os
import sys
from datetime import datetime

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from floodwatch.core.config import get_settings
from floodwatch.core.exceptions import ConfigurationError, GatewayReadError
from floodwatch.session.context import ClientContext
from floodwatch.visualization.map_generator import MapConfig, generate_report_map


async def fetch_reports():
    context = await ClientContext.connect(get_settings())
    try:
        return await context.gateway.fetch_reports()
    finally:
        await context.close()


def main():
    print("=" * 60)
    print("FloodWatch - Generating Road Report Map")
    print("=" * 60)

    print("\nFetching road reports from Supabase...")
    try:
        reports = asyncio.run(fetch_reports())
    except ConfigurationError as e:
        print(f"ERROR: {e} (check your .env file)")
        sys.exit(1)
    except GatewayReadError as e:
        print(f"ERROR: could not load reports: {e}")
        sys.exit(1)

    print(f"\nTotal reports found: {len(reports)}")

    if not reports:
        print("No road reports yet.")
        return

    # Statistics
    by_level = {}
    for report in reports:
        by_level[report.rain_level.value] = by_level.get(report.rain_level.value, 0) + 1

    print(f"\nStatistics:")
    print(f"  - High:     {by_level.get('high', 0)}")
    print(f"  - Moderate: {by_level.get('moderate', 0)}")
    print(f"  - Low:      {by_level.get('low', 0)}")

    print("\nGenerating interactive map...")

    output_path = os.path.join(
        os.path.dirname(os.path.abspath(__file__)),
        f"flood_reports_{datetime.now().strftime('%Y%m%d_%H%M')}.html",
    )
    generate_report_map(reports, output_path=output_path, config=MapConfig.from_settings())

    print(f"\nMap saved to: {output_path}")
    print("\nOpen the file in your browser to view the interactive map!")
    print("=" * 60)

if __name__ == "__main__":
    main()
