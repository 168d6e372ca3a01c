# fairtopk

Tools for studying fairness in top-k rankings produced by linear scoring
functions. Points are scored by a weight vector; the package counts how many
members of a protected group reach the top k, measures how far a fair weight
vector is from the unfair one it replaces, and how much ranking utility is
lost. Alongside sit a binary space partition of weight space and a set of
thread-safe container building blocks.

The package depends on numpy and scipy. The tests use pytest and are
installed with the `test` extra.

## Modules

- `fairtopk.types`: `Plane`, a hyperplane `normal · x = constant` whose
  normal need not be unit length (`unit_normal()` returns it scaled to unit
  length), and `InputParams`, a dataclass of run settings (`k`,
  `p_group_lower_bound`, `p_group_upper_bound`, `margin`, `thread_count`,
  `sample_count`, `uniform_sampling`, `runtime`, `quality`, `unoptimized`,
  `solver`).
- `fairtopk.data_loader`: `read_preprocessed_dataset(path)` reads a
  comma-separated file whose first two rows hold the per-column minimum and
  maximum. A path containing `compas` is read with two trailing group
  columns, the last of which becomes the groups, protected group 0; a path
  containing `jee` is read with one trailing group column, protected
  group 1. Points are scaled by `1 / (max - min)`. The result is a `Dataset`
  (`points`, `groups`, `protected_group`). A missing file, an unsupported
  name or a malformed table raises `DatasetError`.
- `fairtopk.experiments`:
  - `p_group_count(points, k, groups, p_group, lower_bound, upper_bound, weights)`
    gives the number of protected items in the top k, resolving ties at the
    k-th score (within `1e-8`) towards the midpoint of the bounds.
  - `top_k_utility(...)` sums a score vector over the top k, either taking
    the first k of a stable ranking or filling ties to the protected count
    chosen as above.
  - `evaluate_quality(points, groups, p_group, params, fair_vectors, unfair_vectors)`
    returns a `QualityReport` of the average weight-vector difference,
    protected-group proportion and utility loss; `format()` renders it as
    text, with `N/A` lines when there are no fair vectors.
- `fairtopk.bsp_tree`: `BSPTree` partitions weight space by hyperplanes.
  `insert(plane, fairness_checker)` visits every cell the plane crosses and
  calls the checker with the half-spaces bounding each new cell; the first
  weight vector it returns ends the insertion. `intersects(plane, half_spaces)`
  is the linear-programming test (scipy's HiGHS solver) used for the walk.
- `fairtopk.backoff`: `NoBackoff`, `SingleBackoff`, `ExponentialBackoff`
  and `hardware_pause()`.
- `fairtopk.hashing`: `value_hash(key)` and `pointer_hash(address, alignment)`.
- `fairtopk.circular_arrays`: `FixedSizeCircularArray` and
  `GrowingCircularArray`, indexed modulo a power-of-two capacity; the growing
  one doubles its capacity on `grow(bottom, top)`.
- `fairtopk.bounded_queue`: `BoundedQueue`, a bounded FIFO queue with strong
  and weak push and pop variants; a pop that finds nothing raises
  `QueueEmpty`.
- `fairtopk.scq`: `ScqRing`, a ring of integers below its capacity, built in
  one of the `InitialState` layouts, with `enqueue`, `dequeue`, `finalize`
  and `set_threshold`, plus the helpers `calc_remap_shift` and `remap_index`.
- `fairtopk.buckets`: the storage pieces of a bucketed hash table:
  `BucketState` (a packed lock bit, item count, delete marker and version),
  `Bucket`, `ExtensionItem`, `ExtensionBucket`, `Block` and
  `allocate_block(bucket_count)`.

## Examples

```python
import numpy as np
from fairtopk.experiments import p_group_count

points = [np.array([1.0, 0.0]), np.array([0.0, 1.0]), np.array([0.5, 0.5])]
groups = [0, 1, 0]
count = p_group_count(points, 2, groups, 0, 1, 2, np.array([0.6, 0.4]))
```

```python
from fairtopk.bounded_queue import BoundedQueue

queue = BoundedQueue(4)
queue.try_push("a")
item = queue.pop()
```

## What the package does not do

- It has no command-line program; every feature is a library call.
- It does not search for fair weight vectors by itself: there is no fairness
  check over sampled weight vectors and no solver-based method. `BSPTree`
  takes the fairness check as a function you supply.
- `fairtopk.buckets` provides the buckets and blocks of a hash table, but the
  package contains no complete hash map built on them.