# worker.py
from prefect import serve
from agriconnect.flows import run_bulk_generation, run_csv_pipeline, run_daily_price_roll

if __name__ == "__main__":
    # 1. Import a market CSV dropped on the shared volume.
    csv_importer = run_csv_pipeline.to_deployment(
        name="market-csv-import",
        tags=["csv"],
        description="Imports market item CSVs in the background."
    )

    # 2. Nightly roll of every item's 7-day price history.
    daily_roll = run_daily_price_roll.to_deployment(
        name="daily-price-roll",
        tags=["prices", "cron"],
        cron="1 0 * * *",
        description="Appends today's current price to each item's price history."
    )

    # 3. On-demand dummy data
    bulk_generator = run_bulk_generation.to_deployment(
        name="bulk-market-generation",
        tags=["generation", "manual"],
        description="Generates dummy market listings and imports them."
    )

    serve(csv_importer, daily_roll, bulk_generator, limit=1, pause_on_shutdown=False)
