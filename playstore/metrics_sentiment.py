from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from playstore import aggregations as agg
from playstore.charts import bar_chart, pie_chart, scatter_chart
from playstore.filters import FilteredView
from playstore.models import Sentiment

REVIEW_COLUMNS = ["app_name", "review_text", "sentiment", "polarity", "subjectivity"]


def compute_sentiment(view: FilteredView, *, top_apps: int = 50) -> Dict[str, Any]:
    apps, reviews = view.apps, view.reviews
    distribution = agg.sentiment_distribution(reviews)
    counts = {p["name"]: p["value"] for p in distribution}
    total = int(len(reviews))
    avg_polarity = agg.safe_ratio(reviews["polarity"].sum(), total)

    summary = agg.app_sentiment_summary(reviews, apps, limit=top_apps)
    rating_vs_polarity = agg.correlation_sample(summary, "rating", "avg_polarity", label="app", nonzero=["rating"])
    by_category = agg.category_sentiment(reviews, apps)
    category_points = [{"name": r["category"], "value": r["avg_polarity"]} for r in by_category]
    polarity_subjectivity = agg.polarity_vs_subjectivity(reviews)

    return {
        "filters": asdict(view.criteria),
        "kpis": {
            "total_reviews": total,
            "positive": counts.get(Sentiment.POSITIVE.value, 0),
            "negative": counts.get(Sentiment.NEGATIVE.value, 0),
            "neutral": counts.get(Sentiment.NEUTRAL.value, 0),
            "positive_ratio": agg.safe_ratio(counts.get(Sentiment.POSITIVE.value, 0), total),
            "avg_polarity": avg_polarity,
            "overall_label": agg.polarity_label(avg_polarity),
        },
        "distributions": {"sentiment": distribution, "category_polarity": category_points},
        "correlations": {"rating_vs_polarity": rating_vs_polarity, "polarity_vs_subjectivity": polarity_subjectivity},
        "tables": {
            "app_sentiment": agg.to_records(summary),
            "category_sentiment": by_category,
            "most_positive": agg.to_records(agg.extreme_reviews(reviews, Sentiment.POSITIVE.value), REVIEW_COLUMNS),
            "most_negative": agg.to_records(agg.extreme_reviews(reviews, Sentiment.NEGATIVE.value), REVIEW_COLUMNS),
        },
        "charts": {
            "sentiment": pie_chart(distribution, title="Sentiment Distribution"),
            "category_polarity": bar_chart(category_points, title="Average Polarity by Category", value_title="Polarity", value_format=".2f", horizontal=True),
            "rating_vs_polarity": scatter_chart(rating_vs_polarity, title="Sentiment Polarity vs App Rating", x_title="Rating", y_title="Average Polarity"),
            "polarity_vs_subjectivity": scatter_chart(polarity_subjectivity, title="Polarity vs Subjectivity", x_title="Polarity", y_title="Subjectivity"),
        },
    }
