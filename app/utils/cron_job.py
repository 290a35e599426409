from app.database.database import DocumentStore
from app.services.delivery_service import sync_delivery_earnings
from app.utils.logger_config import setup_logger

logger = setup_logger("delito.sync", log_file="sync.log")


async def sync_all_delivery_earnings(store: DocumentStore):
    """
    Recalculate cached earnings for every delivery partner
    """
    logger.info("Starting delivery earnings sync job...")
    try:
        result = await sync_delivery_earnings(store)
        failed = [r.id for r in result.results if not r.success]
        if failed:
            logger.warning(f"Earnings sync failed for: {', '.join(failed)}")
        logger.info(f"Delivery earnings sync job completed: {result.message}")
    except Exception as e:
        logger.error(f"Error in sync_all_delivery_earnings: {str(e)}")
