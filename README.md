# cbtools

Tools for evaluating predictions and testing hypotheses in computational
biology.

- `cbtools.evaluation`: `Point`, `ConfusionMatrix`, `CVFolds`, ROC,
  precision-recall and remaining-uncertainty/misinformation curves
  (`roc`, `prc`, `rmc` and their `*_with_thresholds` forms), `auc_score`,
  `fmax_score`, `sdmin_score`, `ordered_trapz`, `fmax`, `sdmin` and
  `quantile` (linear interpolation between order statistics).
- `cbtools.averages`: `macro_average`, `micro_average` and
  `micro_average_curve` over prediction and ground-truth matrices, with
  `EvalCentric` (`INS` for rows, `LAB` for columns) and `EvalMetric`
  (`FMAX`, `PRC`, `SDMIN`, `RMC`, `AUC`, `ROC`).
- `cbtools.distribution`: Fisher's exact test (`fisher_test`) and Student
  t-tests (`t_test`, `two_sample_t_test_eqv`, `two_sample_t_test_noeqv`,
  `ttest`, `ttest2`), each with a `Tail` of `BOTH`, `LEFT` or `RIGHT`.
- `cbtools.losses`: loss functions `MSE`, `MAE`, `CrossEntropy`, `MSECon`,
  `SD` and `MSEConReg`, built by id with `make_loss(LossId...)`.
- `cbtools.transfers`: activations `Sigmoid`, `Tanh`, `Tansig` and
  `Purelin`, built by id with `make_transfer(TransferId...)`.
- `cbtools.ensemble`: `Ensemble`, a bagging ensemble that trains each member
  (made by a factory you pass in) on a bootstrap sample and averages their
  predictions; `train_oob` can also return out-of-bag predictions.
- `cbtools.cafa`: `cafa_save` writes a prediction matrix as
  `<sequence>\t<term>\t<score>` lines.
- `cbtools.tailstat`: the `tail-stat` command and its pieces
  (`parse_arguments`, `load_items`, `load_scores`, `combine_scores`, `run`).

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Library use

```python
from cbtools.evaluation import auc_score, fmax_score, roc
from cbtools.distribution import Tail, fisher_test

predictions = [0.9, 0.8, 0.3, 0.1]
labels = [True, False, True, False]

print(auc_score(predictions, labels))
print(fmax_score(predictions, labels))
print(roc(predictions, labels))
print(fisher_test(3, 1, 1, 3, Tail.RIGHT))
```

```python
import numpy as np
from cbtools.averages import EvalCentric, EvalMetric, macro_average, micro_average

p = np.array([[0.9, 0.2, 0.4], [0.1, 0.7, 0.6]])
t = np.array([[1, 0, 1], [0, 1, 0]])
print(macro_average(p, t, EvalCentric.INS, EvalMetric.AUC))
print(micro_average(p, t, EvalCentric.INS, EvalMetric.FMAX))
```

## Commands

### tail-stat

Compares the right tail of combined variant-times-gene scores (a sum with
`-log y`) between a case and a control group. The tail starts at the `-q`
quantile of the control scores.

```
tail-stat -c case.txt -t control.txt -v variants.txt -g genes.txt [options]
```

Case and control files list variants as `<Entrez ID>_<mutation>`; the variant
file holds `<variant> <score>` lines and the gene file `<Entrez ID> <score>`
lines.

Options:

- `-vcutoff <0..1>` variant scores below this are set to zero (default 0)
- `-vmild <file>` variants whose score is set to zero
- `-excl <file>` genes to leave out
- `-enforce <file>` genes whose score is forced to one (zero with `-log y`)
- `-stat pvalue|auc|dor|lr` statistic to report (default `pvalue`)
- `-q <0..1>` quantile of control scores that starts the tail (default 0.95)
- `-log y|n` treat scores as log probabilities (default `n`)
- `-outfmt 0|1|2` with `-stat pvalue`: the p-value, the p-value with a
  contingency table, or one `<variant> <score> <c|t>` line per variant
- `-bootstrap y|n` repeat 100 times on resampled variants (forces `-outfmt 0`)

### cb-fisher

```
cb-fisher A B C D TAIL
```

Prints the p-value of Fisher's exact test for the 2x2 table; `TAIL` is 0 for
both tails, negative for the left tail and positive for the right.

### cb-quantile

```
cb-quantile values.txt 0.9
```

Prints the requested quantile of the numbers in the file.

### cb-auc

```
cb-auc predictions.txt labels.txt
```

Prints the area under the ROC curve for whitespace-separated scores and
matching `0`/`1` labels.

## What is not included

There is no neural network model or trainer: `cbtools.losses` and
`cbtools.transfers` provide the loss and activation functions only, and
`Ensemble` works with whatever model objects you supply (anything with
`train(x, y)` and `predict(x)`). There is no ontology or annotation handling,
and CAFA files can be written with `cafa_save` but not read.