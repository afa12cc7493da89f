# Analysis engines — pure, stateless computations over outcome lists
