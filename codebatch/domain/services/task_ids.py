"""Task ID assignment - deterministic ids in plan order."""

from codebatch.domain.entities.batch import CombinedBatch, MultiBatch, SingleBatch


def assign_task_ids(
    combined: list[CombinedBatch],
    single: list[SingleBatch],
    multi: list[MultiBatch],
) -> list[CombinedBatch | SingleBatch | MultiBatch]:
    """Order batches combined, single, multi and give each a task id.

    Combined and single batches get ``task_<n>``. All parts of one large file
    share ``<n>`` and get ``task_<n>_<part>``. Same input, same ids.
    """
    ordered: list[CombinedBatch | SingleBatch | MultiBatch] = []
    n = 0
    for batch in [*combined, *single]:
        n += 1
        ordered.append(batch.model_copy(update={"task_id": f"task_{n}", "sequence_index": len(ordered)}))

    file_numbers: dict[str, int] = {}
    for part in multi:
        path = part.files[0].path
        if path not in file_numbers:
            n += 1
            file_numbers[path] = n
        task_id = f"task_{file_numbers[path]}_{part.part_index}"
        ordered.append(part.model_copy(update={"task_id": task_id, "sequence_index": len(ordered)}))
    return ordered
