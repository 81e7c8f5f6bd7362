"""Basic example of routing records with Laneselect.

Routes orders to a "priority" lane when they are large, to a "uk" lane when
they ship to the UK (an order can land in both), and everything else to the
default "standard" lane.
"""
import logging

from laneselect import (
    DefaultStageContext,
    ErrorSink,
    InMemoryBatchMaker,
    Record,
    RecordHeader,
    SelectorProcessor,
)


def main():
    """Route a handful of orders and print where each one went."""
    logging.basicConfig(level=logging.INFO)

    processor = SelectorProcessor(
        lane_predicates=[
            {"outputLane": "priority", "predicate": "${record:value('/total') >= priority_total}"},
            {"outputLane": "uk", "predicate": "${record:value('/ship_to/country') == 'UK'}"},
            {"outputLane": "standard", "predicate": "default"},
        ],
        constants={"priority_total": 1000},
        context=DefaultStageContext(["priority", "uk", "standard"]),
    )
    processor.init()

    orders = [
        Record({"total": 2500, "ship_to": {"country": "UK"}}, RecordHeader("order-1")),
        Record({"total": 40, "ship_to": {"country": "DE"}}, RecordHeader("order-2")),
        Record({"total": 40}, RecordHeader("order-3")),
    ]

    batch_maker = InMemoryBatchMaker()
    error_sink = ErrorSink()
    summary = processor.process_batch(orders, batch_maker, error_sink)

    print(f"📦 Routed {summary.processed} orders ({summary.rejected} rejected)")
    for lane, records in batch_maker.lanes.items():
        print(f"   {lane}: {', '.join(record.id for record in records)}")
    for record, error in error_sink.errors:
        print(f"❌ {record.id}: {error.cause}")


if __name__ == "__main__":
    main()
