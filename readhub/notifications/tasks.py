# notifications/tasks.py

from celery import shared_task

from notifications.fanout import deliver_activity, send_weekly_summaries


@shared_task(acks_late=True)
def deliver_activity_task(activity_id: int):
    # retries live inside the fan-out; redelivery is idempotent per channel
    delivery = deliver_activity(activity_id)
    return delivery.status if delivery else None


@shared_task
def send_weekly_summaries_task():
    return send_weekly_summaries()
