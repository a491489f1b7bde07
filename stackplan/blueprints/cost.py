from typing import List

from stackplan.config import SiteConfig
from stackplan.models.declaration import Budget, BudgetNotification, ResourceDeclaration


def budget_alerts(cfg: SiteConfig) -> List[ResourceDeclaration]:
    b = cfg.budget
    subscribers = tuple(b.alert_emails)

    notifications = (
        BudgetNotification(
            notification_type="FORECASTED",
            threshold=b.forecast_threshold,
            subscribers=subscribers,
        ),
        BudgetNotification(
            notification_type="ACTUAL",
            threshold=b.actual_threshold,
            subscribers=subscribers,
        ),
    )

    return [
        Budget(
            name="BudgetForAlerting",
            budget_name=b.name,
            amount=b.amount,
            unit=b.currency,
            notifications=notifications if subscribers else (),
        )
    ]
