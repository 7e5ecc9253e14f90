# tensorgraph

A small computation-graph engine. You build a graph of tensors and operators,
let it infer output shapes and data types, simplify it, plan the memory every
tensor needs, and then run it with the CPU kernels.

## Installation

```
pip install .
```

To run the tests, install the test extra and run pytest:

```
pip install ".[test]"
pytest
```

## Building and running a graph

```python
from tensorgraph.data_type import DataType
from tensorgraph.data_generator import IncrementalGenerator, ValGenerator
from tensorgraph.element_wise import Add
from tensorgraph.graph import Graph
from tensorgraph.runtime import NativeCpuRuntime

runtime = NativeCpuRuntime.get_instance()
g = Graph(runtime)

a = g.add_tensor([1, 2, 2, 3, 1], DataType.Float32)
b = g.add_tensor([2, 1, 1], DataType.Float32)
op = g.add_op(Add, a, b, None)   # the output tensor is created for you

print(op.output(0).dims)         # [1, 2, 2, 3, 1]

g.data_malloc()                  # plan and bind memory for every tensor
a.set_data(IncrementalGenerator())
b.set_data(ValGenerator(1))

runtime.run(g)
op.output(0).print_data()
print(op.output().equal_data([0, 1, 2, 4, 5, 6, 6, 7, 8, 10, 11, 12]))  # True
```

`Graph.add_op` creates the operator's outputs itself; pass `None` where an
output tensor would go. Use `Graph.add_op_with_outputs` when the output
tensors already exist in the graph; their shapes are then checked against the
inferred ones. Existing tensors can be added with `Graph.attach_tensor` and
`Graph.attach_tensors`.

Other useful members of `Graph`: `tensors`, `operators`, `get_inputs()`,
`get_outputs()`, `get_tensor(fuid)`, `topo_sort()`, `shape_infer()`,
`check_valid()` and `print()`.

Tensors expose `dims`, `rank`, `size` (element count), `bytes`, `dtype`,
`fuid`, `source` and `targets`. Once memory is bound, `data_view()` gives a
typed `memoryview` over the elements, `set_data(generator)` fills them,
`data_to_string()` / `print_data()` render them and `equal_data(...)`
compares them with another tensor or a list of values.

## Operators

| Module | Operators |
| --- | --- |
| `tensorgraph.element_wise` | `Add`, `Sub`, `Mul`, `Div` (bidirectional broadcasting) |
| `tensorgraph.matmul` | `Matmul` with `trans_a` / `trans_b` |
| `tensorgraph.transpose` | `Transpose` with a permutation |
| `tensorgraph.concat` | `Concat` along one axis (negative axes allowed) |
| `tensorgraph.unary` | `Relu`, `Clip`, `Cast` (with `CastType`) |

Shape helpers (`infer_broadcast`, `get_real_axis`, `locate_index`,
`delocate_index`) live in `tensorgraph.shape_utils`.

## Kernels

`tensorgraph.cpu_kernels` registers CPU kernels for `Add`, `Sub`, `Mul`,
`Div`, `Relu`, `Clip`, `Transpose` and `Concat`, for `Float32` and `UInt32`
data. They are registered in `tensorgraph.kernel.KernelRegistry` when
`tensorgraph.runtime` is imported. Further kernels can be added with the
`register_kernel(device, op_type, name)` class decorator on a `Kernel`
subclass.

## Graph optimisation

`Graph.optimize()` applies two rewrites:

* two consecutive `Transpose` operators whose permutations cancel out are
  removed; if they do not cancel, they are merged into a single `Transpose`;
* a `Transpose` that only swaps the last two axes and feeds a `Matmul` (and
  nothing else) is folded into the matmul's `trans_a` or `trans_b` flag.

```python
from tensorgraph.matmul import Matmul
from tensorgraph.transpose import Transpose

g = Graph(runtime)
i1 = g.add_tensor([2, 3, 4, 5], DataType.UInt32)
i2 = g.add_tensor([2, 3, 4, 5], DataType.UInt32)
t1 = g.add_tensor([2, 3, 5, 4], DataType.UInt32)
t2 = g.add_tensor([2, 3, 4, 5], DataType.UInt32)
t3 = g.add_tensor([2, 3, 5, 4], DataType.UInt32)
o = g.add_tensor([2, 3, 4, 4], DataType.UInt32)
g.add_op_with_outputs(Transpose, i1, t1, [0, 1, 3, 2])
g.add_op_with_outputs(Transpose, t1, t2, [0, 1, 3, 2])
g.add_op_with_outputs(Transpose, i2, t3, [0, 1, 3, 2])
g.add_op_with_outputs(Matmul, t2, t3, o)

g.optimize()
g.print()   # a single Matmul(i1, i2) with trans_b set
```

## Memory planning

`tensorgraph.allocator.Allocator` simulates allocation with best-fit reuse of
freed blocks, merging neighbouring free blocks and shrinking the arena when
the last block is released. Every size is rounded up to a multiple of 8 bytes.
`Allocator.get_ptr()` obtains one buffer of the peak size from the runtime,
once. `Graph.data_malloc()` uses it to give each tensor its own slice of that
buffer.

## What it does not do

* `Matmul` and `Cast` take part in shape and type inference and in
  optimisation, but have no CPU kernel: running a graph that contains one
  raises `GraphError`.
* Kernels and data generators handle only `Float32` and `UInt32` data.
* There is no command-line tool and no reading or writing of model files;
  graphs are built in Python code.

## Errors

Failed checks raise `tensorgraph.errors.GraphError`. Examples are a tensor
added from a different runtime, an out-of-range axis, mismatched matmul
dimensions, a missing kernel, or a cyclic graph passed to `data_malloc`.